import pathlib
import tempfile
from unittest import mock

import unittest as ut

import enigma
import enigma_io
import run_enigma

SMALL_CONFIG = """
ABCD
3 1
R R (AC) (BD)
F N (AB)
M MA (ABCD)
"""


class ReadConfigTest(ut.TestCase):
    def test_default_config(self):
        machine = enigma_io.read_config()
        self.assertEqual(machine.n_rotors, 5)
        self.assertEqual(machine.n_pawls, 3)
        self.assertEqual(len(machine.alphabet), 26)
        names = [rot.name for rot in machine.all_rotors]
        self.assertListEqual(names, ['I', 'II', 'III', 'IV', 'V', 'VI', 'VII', 'VIII', 'Beta', 'Gamma', 'B', 'C'])

        catalog = {rot.name: rot for rot in machine.all_rotors}
        self.assertEqual(catalog['VI'].notches, {'Z', 'M'})
        self.assertEqual(catalog['I'].notches, {'Q'})
        self.assertEqual(catalog['Gamma'].kind, enigma.RotorKind.FIXED)
        self.assertEqual(catalog['C'].kind, enigma.RotorKind.REFLECTOR)
        for rot in machine.all_rotors:
            if rot.reflecting():
                self.assertTrue(rot.permutation.derangement())
        # historical wiring of rotor V starts with VZBR
        self.assertEqual(''.join(catalog['V'].permutation.permute_char(c) for c in 'ABCD'), 'VZBR')

    def test_small_config(self):
        machine = enigma_io.read_config(SMALL_CONFIG)
        self.assertEqual(machine.alphabet.chars, 'ABCD')
        self.assertEqual((machine.n_rotors, machine.n_pawls), (3, 1))
        kinds = [rot.kind for rot in machine.all_rotors]
        self.assertListEqual(kinds, [enigma.RotorKind.REFLECTOR, enigma.RotorKind.FIXED, enigma.RotorKind.MOVING])

    def test_config_errors(self):
        bad_configs = [
            'ABCD',
            'ABCD x 1',
            'AB(C 3 1',
            'ABCD 3 1 R X (AB)',
            'ABCD 3 1 R R (AC) (BD) F',
            'ABCD 3 1 R R (AC) (BA)',
            'ABCD 3 1 R R (AC (BD)',
            'ABCD 3 3 R R (AC) (BD)',
        ]
        for config in bad_configs:
            with self.subTest(config=config):
                with self.assertRaises(enigma.ConfigError):
                    enigma_io.read_config(config)
        with self.assertRaises(enigma.AlphabetError):
            enigma_io.read_config('ABCD 3 1 R R (AE)')
        with self.assertRaises(enigma.AlphabetError):
            enigma_io.read_config('ABCA 3 1 R R (AB)')

    def test_reflector_warning(self):
        with self.assertLogs('enigma_io', level='WARNING'):
            enigma_io.read_config('ABCD 2 1 R R (AB) M MA (ABCD)')


class ParseCyclesTest(ut.TestCase):
    alphabet = enigma.Alphabet()

    def test_normalise(self):
        self.assertEqual(enigma_io.parse_cycles(' (AB)(CD)  (EFG) ', self.alphabet), '(AB) (CD) (EFG)')
        self.assertEqual(enigma_io.parse_cycles('', self.alphabet), '')

    def test_errors(self):
        for text in ['(AB', 'AB', '(AB) (BC)', '()', '(A*B)']:
            with self.subTest(text=text):
                with self.assertRaises(enigma.ConfigError):
                    enigma_io.parse_cycles(text, self.alphabet)
        with self.assertRaises(enigma.AlphabetError):
            enigma_io.parse_cycles('(Ab)', self.alphabet)


class SetupTest(ut.TestCase):
    def setUp(self):
        self.machine = enigma_io.read_config()

    def test_setup(self):
        enigma_io.setup(self.machine, '* B Beta III IV I AXLE (HQ) (EX) (IP) (TR) (BY)')
        self.assertListEqual([self.machine.get_rotor(k).name for k in range(5)], ['B', 'Beta', 'III', 'IV', 'I'])
        self.assertEqual(self.machine.get_rotor_setting(), 'AXLE')
        self.assertEqual(self.machine.plugboard.permute_char('H'), 'Q')
        self.assertEqual(self.machine.plugboard.permute_char('A'), 'A')
        self.assertTrue(all(self.machine.get_rotor(k).ring == 0 for k in range(5)))

    def test_setup_with_rings(self):
        enigma_io.setup(self.machine, '* C Gamma V II IV QEVZ ABCD (AZ) (MN)')
        self.assertListEqual([self.machine.get_rotor(k).ring for k in range(5)], [0, 0, 1, 2, 3])

    def test_setup_errors(self):
        bad_lines = [
            '',
            'B Beta III IV I AXLE',
            '* B Beta III IV I',
            '* I Beta III IV V AXLE',
            '* B Beta III IV X AXLE',
            '* B III Beta IV I AXLE',
            '* B Beta III IV I AXL',
            '* B Beta III IV I AXLE (AB) (BC)',
            '* B Beta III IV I AXLE AAA (AB)',
        ]
        for line in bad_lines:
            with self.subTest(line=line):
                with self.assertRaises(enigma.ConfigError):
                    enigma_io.setup(self.machine, line)

    def test_unknown_reflector_name(self):
        with self.assertRaisesRegex(enigma.ConfigError, 'unknown rotor X'):
            enigma_io.setup(self.machine, '* X Beta III IV I AXLE')
        with self.assertRaisesRegex(enigma.ConfigError, 'should be a reflector'):
            enigma_io.setup(self.machine, '* I Beta III IV V AXLE')

    def test_rejected_line_keeps_machine(self):
        enigma_io.setup(self.machine, '* B Beta III IV I AXLE (HQ) (EX) (IP) (TR) (BY)')
        self.assertEqual(self.machine.convert_message('FROM'), 'PEHO')
        plugboard = self.machine.plugboard

        bad_lines = [
            '* C Gamma V II IV QEV',
            '* C Gamma V II IV QEV1',
            '* C Gamma V II IV QEVZ ABC',
            '* C Gamma V II IV QEVZ AB1D',
            '* C Gamma V II IV QEVZ (AB) (BC)',
            '* C Gamma V II V QEVZ',
        ]
        for line in bad_lines:
            with self.subTest(line=line):
                with self.assertRaises(enigma.EnigmaError):
                    enigma_io.setup(self.machine, line)
                self.assertListEqual([self.machine.get_rotor(k).name for k in range(5)],
                                     ['B', 'Beta', 'III', 'IV', 'I'])
                self.assertEqual(self.machine.get_rotor_setting(), 'AXLI')
                self.assertIs(self.machine.plugboard, plugboard)

        # the rest of the message comes out as if nothing happened
        self.assertEqual(self.machine.convert_message('HISSHOULDERHIAWATHA'), 'EARQSRSTZNTRSXTEZCO')


class ProcessTest(ut.TestCase):
    def test_format_message(self):
        self.assertEqual(enigma_io.format_message('ABCDEFGHIJKL'), 'ABCDE FGHIJ KL')
        self.assertEqual(enigma_io.format_message('ABCDEFGHIJ'), 'ABCDE FGHIJ')
        self.assertEqual(enigma_io.format_message(''), '')

    def test_process(self):
        machine = enigma_io.read_config()
        lines = [
            '* B Beta III IV I AXLE (HQ) (EX) (IP) (TR) (BY)',
            'FROM HIS SHOULDER HIAWATHA',
            '',
            '* B Beta III IV I AXLE (HQ) (EX) (IP) (TR) (BY)',
            'PEHOE ARQSR STZNT RSXTE ZCO',
            '* C Gamma V II IV QEVZ ABCD (AZ) (MN)',
            'HELLO WORLD',
        ]
        output = list(enigma_io.process(machine, lines))
        self.assertListEqual(output, [
            'PEHOE ARQSR STZNT RSXTE ZCO',
            '',
            'FROMH ISSHO ULDER HIAWA THA',
            'PJODE IPHCU',
        ])

    def test_small_machine(self):
        machine = enigma_io.read_config(SMALL_CONFIG)
        self.assertListEqual(list(enigma_io.process(machine, ['* R F M AA', 'A'])), ['B'])
        self.assertListEqual(list(enigma_io.process(machine, ['* R F M AA', 'B'])), ['A'])

    def test_missing_settings_line(self):
        machine = enigma_io.read_config()
        with self.assertRaises(enigma.ConfigError):
            list(enigma_io.process(machine, ['HELLO WORLD']))

    def test_symbol_not_in_alphabet(self):
        machine = enigma_io.read_config()
        with self.assertRaises(enigma.AlphabetError):
            list(enigma_io.process(machine, ['* B Beta III IV I AXLE', 'hello']))


class RunEnigmaTest(ut.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.tmp = pathlib.Path(self.tmp_dir.name)

    def tearDown(self):
        self.tmp_dir.cleanup()

    def test_files(self):
        in_file = self.tmp / 'message.in'
        out_file = self.tmp / 'message.out'
        in_file.write_text('* C Gamma V II IV QEVZ ABCD (AZ) (MN)\nHELLO WORLD\n')

        self.assertEqual(run_enigma.main([str(in_file), str(out_file)]), 0)
        self.assertEqual(out_file.read_text(), 'PJODE IPHCU\n')

    def test_config_file(self):
        config_file = self.tmp / 'small.conf'
        config_file.write_text(SMALL_CONFIG)
        in_file = self.tmp / 'message.in'
        out_file = self.tmp / 'message.out'
        in_file.write_text('* R F M AA\nA\n')

        self.assertEqual(run_enigma.main(['--config', str(config_file), str(in_file), str(out_file)]), 0)
        self.assertEqual(out_file.read_text(), 'B\n')

    def test_error_exit(self):
        in_file = self.tmp / 'message.in'
        in_file.write_text('HELLO WORLD\n')
        with self.assertLogs('run_enigma', level='ERROR') as logs:
            self.assertEqual(run_enigma.main([str(in_file)]), 1)
        self.assertIn('Error:', logs.output[0])

    def test_missing_file(self):
        with self.assertLogs('run_enigma', level='ERROR'):
            self.assertEqual(run_enigma.main([str(self.tmp / 'does_not_exist.in')]), 1)

    def test_unreadable_stdin(self):
        stdin = mock.Mock()
        stdin.read.side_effect = OSError('stdin closed')
        with mock.patch.object(run_enigma.sys, 'stdin', stdin):
            with self.assertLogs('run_enigma', level='ERROR') as logs:
                self.assertEqual(run_enigma.main([]), 1)
        self.assertIn('stdin closed', logs.output[0])
        self.assertNotIn('None', logs.output[0])


if __name__ == '__main__':
    ut.main()
