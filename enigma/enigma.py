import enum
import logging
import string

import numpy as np


class EnigmaError(ValueError):
    pass


class ConfigError(EnigmaError):
    """Misuse of the machine setup: slot counts, rotor placement, settings."""


class AlphabetError(EnigmaError):
    """A symbol that is not part of the alphabet in use."""


def gen_rotor_cycles(alphabet, seed: int) -> str:
    """
    cycle notation of a random permutation of the alphabet, e.g. "(ACB) (D)"
    """
    rng = np.random.default_rng(seed)
    perm_forward = rng.permutation(len(alphabet)).tolist()

    cycles = []
    seen = set()
    for start in range(len(alphabet)):
        if start in seen:
            continue
        cycle = str()
        idx = start
        while idx not in seen:
            seen.add(idx)
            cycle += alphabet.to_char(idx)
            idx = perm_forward[idx]
        cycles.append(f'({cycle})')
    return ' '.join(cycles)


def gen_swap_cycles(alphabet, n_swaps: int, seed: int) -> str:
    """
    cycle notation of n_swaps disjoint transpositions.
    With n_swaps == len(alphabet) // 2 and an even alphabet this is a reflector wiring.
    """
    assert n_swaps <= len(alphabet) // 2
    elements = list(range(len(alphabet)))
    rng = np.random.default_rng(seed)

    # random input jacks of the board
    firsts = rng.choice(elements, size=n_swaps, replace=False)
    for el in firsts:
        elements.remove(el)

    # random output jacks
    seconds = rng.choice(elements, size=n_swaps, replace=False)

    return ' '.join(f'({alphabet.to_char(int(first))}{alphabet.to_char(int(second))})'
                    for first, second in zip(firsts, seconds))


class Alphabet:
    def __init__(self, chars: str = string.ascii_uppercase):
        self.chars = chars
        self.char_to_number_map = dict()
        for i, char in enumerate(self.chars):
            if char in self.char_to_number_map:
                raise AlphabetError(f'symbol {char!r} appears twice in alphabet {chars!r}')
            self.char_to_number_map[char] = i

    def __len__(self):
        return len(self.chars)

    def __contains__(self, char):
        return char in self.char_to_number_map

    def contains(self, char: str) -> bool:
        return char in self

    def to_char(self, index: int) -> str:
        # no negative indexing into the alphabet
        if not 0 <= index < len(self.chars):
            raise IndexError(f'index {index} out of range for alphabet of size {len(self.chars)}')
        return self.chars[index]

    def to_int(self, char: str) -> int:
        try:
            return self.char_to_number_map[char]
        except KeyError:
            raise AlphabetError(f'symbol {char!r} is not in alphabet {self.chars!r}') from None

    def __repr__(self):
        return f'Alphabet({self.chars!r})'


class Permutation:
    def __init__(self, cycles: str, alphabet: Alphabet):
        """
        :param cycles: permutation in cycle notation "(cccc) (cc) ...", whitespace is ignored.
        Symbols that are in no cycle map to themselves.
        """
        self.alphabet = alphabet
        self.cycles = cycles.replace('(', ' ').replace(')', ' ').split()

        positions = np.arange(len(alphabet))
        self.forward = positions.copy()
        self.backward = positions.copy()
        # the first cycle that contains a symbol decides, later repeats are ignored
        assigned_forward = np.zeros(len(alphabet), dtype=bool)
        assigned_backward = np.zeros(len(alphabet), dtype=bool)
        for cycle in self.cycles:
            idxs = [alphabet.to_int(c) for c in cycle]
            for j, idx in enumerate(idxs):
                if not assigned_forward[idx]:
                    self.forward[idx] = idxs[(j + 1) % len(idxs)]
                    assigned_forward[idx] = True
                if not assigned_backward[idx]:
                    self.backward[idx] = idxs[j - 1]
                    assigned_backward[idx] = True

    def __len__(self):
        return len(self.alphabet)

    def size(self) -> int:
        return len(self.alphabet)

    def wrap(self, p: int) -> int:
        # python's % is already floored
        return p % len(self.alphabet)

    def permute(self, p: int) -> int:
        return int(self.forward[self.wrap(p)])

    def invert(self, c: int) -> int:
        return int(self.backward[self.wrap(c)])

    def permute_char(self, p: str) -> str:
        return self.alphabet.to_char(self.permute(self.alphabet.to_int(p)))

    def invert_char(self, c: str) -> str:
        return self.alphabet.to_char(self.invert(self.alphabet.to_int(c)))

    def derangement(self) -> bool:
        return not np.any(self.forward == np.arange(len(self.alphabet)))

    def __repr__(self):
        return f"Permutation({' '.join(f'({c})' for c in self.cycles)!r})"


class RotorKind(enum.Enum):
    REFLECTOR = 'R'
    FIXED = 'N'
    MOVING = 'M'


class Rotor:
    """
    A wired permutation plus its rotational state.
    Reflectors and fixed rotors never advance, only moving rotors have notches.
    """

    def __init__(self, name: str, kind: RotorKind, permutation: Permutation, notches: str = ''):
        self.name = name
        self.kind = kind
        self.permutation = permutation
        if kind is not RotorKind.MOVING and notches:
            raise ConfigError(f'rotor {name} of kind {kind.name} cannot have notches')
        for notch in notches:
            if notch not in permutation.alphabet:
                raise AlphabetError(f'notch {notch!r} of rotor {name} is not in the alphabet')
        self.notches = set(notches)

        self.setting = 0
        self.ring = 0

    @property
    def alphabet(self) -> Alphabet:
        return self.permutation.alphabet

    def size(self) -> int:
        return self.permutation.size()

    def copy(self):
        """fresh rotor with the same name and wiring, setting and ring back at 0"""
        return Rotor(self.name, self.kind, self.permutation, ''.join(sorted(self.notches)))

    def rotates(self) -> bool:
        return self.kind is RotorKind.MOVING

    def reflecting(self) -> bool:
        return self.kind is RotorKind.REFLECTOR

    def at_notch(self) -> bool:
        return self.rotates() and self.alphabet.to_char(self.setting) in self.notches

    def _to_position(self, pos) -> int:
        if isinstance(pos, str):
            return self.alphabet.to_int(pos)
        return self.permutation.wrap(pos)

    def set(self, pos):
        """set the rotor to a symbol of the alphabet or to an index"""
        pos = self._to_position(pos)
        if self.reflecting() and pos != 0:
            raise ConfigError(f'reflector {self.name} can only be set to position 0')
        self.setting = pos

    def set_ring(self, pos):
        pos = self._to_position(pos)
        if self.reflecting() and pos != 0:
            raise ConfigError(f'reflector {self.name} has no ring setting')
        self.ring = pos

    def advance(self):
        if not self.rotates():
            raise ConfigError(f'rotor {self.name} of kind {self.kind.name} does not rotate')
        self.setting = self.permutation.wrap(self.setting + 1)

    def convert_forward(self, p: int) -> int:
        shift = self.setting - self.ring
        return self.permutation.wrap(self.permutation.permute(p + shift) - shift)

    def convert_backward(self, e: int) -> int:
        shift = self.setting - self.ring
        return self.permutation.wrap(self.permutation.invert(e + shift) - shift)

    def __repr__(self):
        return f'<Rotor {self.name} {self.kind.name} pos={self.setting} ring={self.ring}>'


class Machine:
    def __init__(self, alphabet: Alphabet, n_rotors: int, n_pawls: int, all_rotors, logger=None):
        """
        :param all_rotors: catalog of available rotors. Rotors are copied into the slots on insertion,
        the catalog itself is never changed by the machine.
        :param logger: receives the per-character trace on DEBUG level
        """
        if not 0 <= n_pawls < n_rotors:
            raise ConfigError(f'need 0 <= pawls < rotor slots, got {n_pawls} pawls for {n_rotors} slots')
        self.alphabet = alphabet
        self.n_rotors = n_rotors
        self.n_pawls = n_pawls

        all_rotors = list(all_rotors)
        for rot in all_rotors:
            if not rot.size() == len(alphabet):
                raise ConfigError(f'rotor {rot.name} does not have the same number of positions as the alphabet')
            if rot.alphabet.chars != alphabet.chars:
                raise ConfigError(f'rotor {rot.name} is wired for alphabet {rot.alphabet.chars!r}, not {alphabet.chars!r}')
        self.all_rotors = all_rotors

        self.rotors = []
        self.plugboard = Permutation('', alphabet)
        self.logger = logger or logging.getLogger(__name__)

    def get_rotor(self, k: int) -> Rotor:
        """rotor #k, #0 is the reflector and #(n_rotors - 1) the fast rotor"""
        return self.rotors[k]

    def _find_rotor(self, name: str) -> Rotor:
        for rot in self.all_rotors:
            if rot.name == name:
                return rot
        raise ConfigError(f'unknown rotor {name}')

    def insert_rotors(self, names):
        """
        Put the rotors called names into the slots, names[0] being the reflector.
        All inserted rotors start at setting 0.
        """
        names = list(names)
        if not len(names) == self.n_rotors:
            raise ConfigError(f'machine has {self.n_rotors} rotor slots, got {len(names)} rotors')
        if len(set(names)) != len(names):
            raise ConfigError(f'rotor used more than once in {names}')

        rotors = [self._find_rotor(name).copy() for name in names]
        if not rotors[0].reflecting():
            raise ConfigError(f'first rotor {rotors[0].name} is not a reflector')
        first_moving = self.n_rotors - self.n_pawls
        for i, rot in enumerate(rotors[1:], start=1):
            if rot.reflecting():
                raise ConfigError(f'reflector {rot.name} in slot {i}')
            if i < first_moving and rot.rotates():
                raise ConfigError(f'moving rotor {rot.name} in wrong place (slot {i})')
            if i >= first_moving and not rot.rotates():
                raise ConfigError(f'non-moving rotor {rot.name} in a pawl slot (slot {i})')
        self.rotors = rotors

    def check_setting(self, setting: str, what: str = 'rotor setting'):
        """raise ConfigError unless setting has one symbol of the alphabet per non-reflector slot"""
        if not len(setting) == self.n_rotors - 1:
            raise ConfigError(f'{what} {setting!r} must have {self.n_rotors - 1} characters')
        for char in setting:
            if char not in self.alphabet:
                raise ConfigError(f'{what} {setting!r}: {char!r} is not in the alphabet')

    def set_rotors(self, setting: str):
        """setting[0] is for the leftmost rotor after the reflector"""
        if not self.rotors:
            raise ConfigError(f'cannot apply rotor setting {setting!r}, no rotors inserted')
        self.check_setting(setting)
        for rot, char in zip(self.rotors[1:], setting):
            rot.set(char)

    def set_rings(self, rings: str):
        if not self.rotors:
            raise ConfigError(f'cannot apply ring setting {rings!r}, no rotors inserted')
        self.check_setting(rings, 'ring setting')
        for rot, char in zip(self.rotors[1:], rings):
            rot.set_ring(char)

    def set_plugboard(self, plugboard: Permutation):
        self.plugboard = plugboard

    def get_rotor_setting(self) -> str:
        return ''.join(self.alphabet.to_char(rot.setting) for rot in self.rotors[1:])

    def advance_rotors(self):
        # decide for all slots on the state before anything moves
        advance = [False] * self.n_rotors
        for i, rot in enumerate(self.rotors):
            if not rot.rotates():
                continue
            if i == self.n_rotors - 1:
                advance[i] = True
            elif self.rotors[i + 1].at_notch():
                advance[i] = True
                advance[i + 1] = True
        for rot, adv in zip(self.rotors, advance):
            if adv:
                rot.advance()

    def _apply_rotors(self, c: int) -> int:
        for rot in reversed(self.rotors):
            c = rot.convert_forward(c)
        # the reflector has no return leg
        for rot in self.rotors[1:]:
            c = rot.convert_backward(c)
        return c

    def convert(self, c: int) -> int:
        """convert the character index c after advancing the rotors"""
        if not self.rotors:
            raise ConfigError('no rotors inserted')
        self.advance_rotors()

        plugged = self.plugboard.permute(c)
        number = self._apply_rotors(plugged)
        output = self.plugboard.permute(number)
        if self.logger.isEnabledFor(logging.DEBUG):
            to_char = self.alphabet.to_char
            self.logger.debug('[%s] %s -> %s -> %s -> %s', self.get_rotor_setting(), to_char(self.plugboard.wrap(c)),
                              to_char(plugged), to_char(number), to_char(output))
        return output

    def convert_message(self, msg: str) -> str:
        output = str()
        for char in msg:
            output += self.alphabet.to_char(self.convert(self.alphabet.to_int(char)))
        return output
