import random
import time

import tqdm

import enigma


def build_random_machine(alphabet: enigma.Alphabet, rotor_seeds, n_plugs: int = 10, seed: int = 41) -> enigma.Machine:
    """reflector plus one moving rotor per seed, every rotor with a single notch"""
    reflector = enigma.Rotor('UKW', enigma.RotorKind.REFLECTOR,
                             enigma.Permutation(enigma.gen_swap_cycles(alphabet, len(alphabet) // 2, seed=3),
                                                alphabet))
    rotors = [enigma.Rotor(f'R{i}', enigma.RotorKind.MOVING,
                           enigma.Permutation(enigma.gen_rotor_cycles(alphabet, seed=rotor_seed), alphabet),
                           notches=alphabet.to_char(rotor_seed % len(alphabet)))
              for i, rotor_seed in enumerate(rotor_seeds)]

    machine = enigma.Machine(alphabet, len(rotors) + 1, len(rotors), [reflector] + rotors)
    machine.insert_rotors([reflector.name] + [rot.name for rot in rotors])
    machine.set_plugboard(enigma.Permutation(enigma.gen_swap_cycles(alphabet, n_plugs, seed=seed), alphabet))
    return machine


def time_machine(n_messages: int = 3000, chars_per_message: int = 256, seed: int = 0, disable_tqdm=False) -> float:
    """average time in seconds to encode one random message"""
    alphabet = enigma.Alphabet()
    machine = build_random_machine(alphabet, rotor_seeds=[21, 32, 34])
    rotor_setting = 'DEH'

    rng = random.Random(seed)
    messages = [''.join(rng.choices(alphabet.chars, k=chars_per_message)) for _ in range(n_messages)]
    tick = time.time()
    for message in tqdm.tqdm(messages, disable=disable_tqdm):
        machine.set_rotors(rotor_setting)
        machine.convert_message(message)
    tock = time.time()

    return (tock - tick) / n_messages


if __name__ == '__main__':
    chars_per_message = 256
    avg_time = time_machine(chars_per_message=chars_per_message)
    print(f'Average encoding time for message with {chars_per_message} characters: {avg_time:.2e} seconds')
