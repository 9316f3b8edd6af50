import logging
import re

import tqdm

import enigma

logger = logging.getLogger(__name__)

# the historical wheels: rotors I-VIII, the thin M4 wheels Beta and Gamma, reflectors B and C
DEFAULT_CONFIG = """\
ABCDEFGHIJKLMNOPQRSTUVWXYZ
5 3
I     MQ   (AELTPHQXRU) (BKNW) (CMOY) (DFG) (IV) (JZ) (S)
II    ME   (FIXVYOMW) (CDKLHUP) (ESZ) (BJ) (GR) (NT) (A) (Q)
III   MV   (ABDHPEJT) (CFLVMZOYQIRWUKXSG) (N)
IV    MJ   (AEPLIYWCOXMRFZBSTGJQNH) (DV) (KU)
V     MZ   (AVOLDRWFIUQ) (BZKSMNHYC) (EGTJPX)
VI    MZM  (AJQDVLEOZWIYTS) (BPRK) (CGMNHFUX)
VII   MZM  (ANOUPFRIMBZTLWKSVEGCJYDHXQ)
VIII  MZM  (AFLSETWUNDHOZVICQ) (BKJ) (GXY) (MPR)
Beta  N    (ALBEVFCYODJWUGNMQTZSKPR) (HIX)
Gamma N    (AFNIRLBSQWVXGUZDKMTPCOYJHE)
B     R    (AY) (BR) (CU) (DH) (EQ) (FS) (GL) (IP) (JX) (KN) (MO) (TZ) (VW)
C     R    (AF) (BV) (CP) (DJ) (EI) (GO) (HY) (KR) (LZ) (MX) (NW) (QT) (SU)
"""

CYCLE_RE = re.compile(r'\(([^()*\s]+)\)')
FORBIDDEN_IN_ALPHABET = set('()*')


def parse_cycles(text: str, alphabet: enigma.Alphabet) -> str:
    """
    Check the cycle notation in text and return it normalised to "(ab) (cde) ...".
    Every symbol has to be in the alphabet and may appear only once over all cycles.
    """
    tokens = text.split()
    seen = set()
    cycles = []
    for token in tokens:
        # cycles may be written without blanks in between, e.g. "(AB)(CD)"
        parts = CYCLE_RE.findall(token)
        if not parts or ''.join(f'({p})' for p in parts) != token:
            raise enigma.ConfigError(f'malformed cycle {token!r}')
        for cycle in parts:
            for char in cycle:
                if char not in alphabet:
                    raise enigma.AlphabetError(f'symbol {char!r} in cycle ({cycle}) is not in the alphabet')
                if char in seen:
                    raise enigma.ConfigError(f'symbol {char!r} appears in more than one cycle of {text!r}')
                seen.add(char)
            cycles.append(f'({cycle})')
    return ' '.join(cycles)


def _read_rotor(tokens: list, pos: int, alphabet: enigma.Alphabet):
    """read the rotor description starting at tokens[pos], return the rotor and the next position"""
    if pos + 1 >= len(tokens):
        raise enigma.ConfigError('bad rotor description: configuration file truncated')
    name, type_ = tokens[pos], tokens[pos + 1]
    pos += 2
    cycle_tokens = []
    while pos < len(tokens) and tokens[pos].startswith('('):
        cycle_tokens.append(tokens[pos])
        pos += 1

    permutation = enigma.Permutation(parse_cycles(' '.join(cycle_tokens), alphabet), alphabet)
    if type_.startswith('M'):
        notches = type_[1:]
        return enigma.Rotor(name, enigma.RotorKind.MOVING, permutation, notches), pos
    if type_ == 'N':
        return enigma.Rotor(name, enigma.RotorKind.FIXED, permutation), pos
    if type_ == 'R':
        if not permutation.derangement():
            logger.warning('reflector %s maps a symbol to itself', name)
        return enigma.Rotor(name, enigma.RotorKind.REFLECTOR, permutation), pos
    raise enigma.ConfigError(f'bad rotor description: rotor {name} has invalid type {type_!r}')


def read_config(text: str = DEFAULT_CONFIG, trace_logger=None) -> enigma.Machine:
    """
    Build a machine from a configuration text:
    the alphabet, the number of rotor slots and pawls and then one rotor description after another.
    trace_logger is handed to the machine for the per-character trace.
    """
    tokens = text.split()
    if len(tokens) < 3:
        raise enigma.ConfigError('configuration file truncated')

    chars = tokens[0]
    if FORBIDDEN_IN_ALPHABET & set(chars):
        raise enigma.ConfigError(f'invalid alphabet {chars!r}')
    alphabet = enigma.Alphabet(chars)

    try:
        n_rotors, n_pawls = int(tokens[1]), int(tokens[2])
    except ValueError:
        raise enigma.ConfigError(f'invalid number of rotors or pawls: {tokens[1]!r} {tokens[2]!r}') from None

    all_rotors = []
    pos = 3
    while pos < len(tokens):
        rotor, pos = _read_rotor(tokens, pos, alphabet)
        all_rotors.append(rotor)
    logger.debug('read %d rotors for a machine with %d slots and %d pawls', len(all_rotors), n_rotors, n_pawls)

    return enigma.Machine(alphabet, n_rotors, n_pawls, all_rotors, logger=trace_logger)


def setup(machine: enigma.Machine, settings: str):
    """
    Set the machine according to a settings line
    "* <reflector> <rotors...> <setting> [<rings>] [<plugboard cycles...>]"
    """
    tokens = settings.split()
    if not tokens or tokens[0] != '*':
        raise enigma.ConfigError(f'invalid settings line {settings!r}')
    if len(tokens) < machine.n_rotors + 2:
        raise enigma.ConfigError(f'settings line {settings!r} is too short for {machine.n_rotors} rotors')

    names = tokens[1:machine.n_rotors + 1]
    if not any(rot.name == names[0] for rot in machine.all_rotors):
        raise enigma.ConfigError(f'unknown rotor {names[0]} in settings line')
    if not any(rot.reflecting() and rot.name == names[0] for rot in machine.all_rotors):
        raise enigma.ConfigError(f'first rotor {names[0]} in settings line should be a reflector')

    setting = tokens[machine.n_rotors + 1]
    rest = tokens[machine.n_rotors + 2:]
    rings = None
    if rest and not rest[0].startswith('('):
        rings = rest.pop(0)

    # validate everything before the machine is touched, a rejected line leaves it as it was
    machine.check_setting(setting)
    if rings is not None:
        machine.check_setting(rings, 'ring setting')
    plugboard = enigma.Permutation(parse_cycles(' '.join(rest), machine.alphabet), machine.alphabet)
    machine.insert_rotors(names)
    machine.set_rotors(setting)
    if rings is not None:
        machine.set_rings(rings)
    machine.set_plugboard(plugboard)
    logger.info('machine set to %s %s rings=%s plugboard=%s', ' '.join(names), setting, rings, plugboard.cycles)


def format_message(msg: str, group: int = 5) -> str:
    """msg in groups of five characters, the last group may be shorter"""
    return ' '.join(msg[i:i + group] for i in range(0, len(msg), group))


def process(machine: enigma.Machine, lines, disable_tqdm=True):
    """
    Convert message lines, yielding one output line per message line.
    The first line has to be a settings line, every later line containing '*' sets the machine anew.
    """
    configured = False
    for line in tqdm.tqdm(lines, disable=disable_tqdm):
        line = line.rstrip('\n')
        if '*' in line:
            setup(machine, line)
            configured = True
            continue
        if not configured:
            raise enigma.ConfigError('input has to start with a settings line')
        msg = ''.join(line.split())
        yield format_message(machine.convert_message(msg))
