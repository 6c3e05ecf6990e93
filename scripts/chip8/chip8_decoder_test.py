import unittest
from chip8_decoder import bit, kk, n, nibble, nnn, opcode_value, pattern, vx, vy
from chip8_machine import UnknownOpcodeError


class TestFields(unittest.TestCase):
    def test_nibbles(self):
        ins = bytes([0xD1, 0x2F])
        self.assertEqual([nibble(ins, p) for p in range(4)],
                         [0xD, 0x1, 0x2, 0xF])

    def test_bit(self):
        self.assertTrue(bit(0x80, 7))
        self.assertFalse(bit(0x80, 6))
        self.assertTrue(bit(0x01, 0))
        self.assertIs(bit(0xFF, 3), True)

    def test_opcode_value(self):
        self.assertEqual(opcode_value(bytes([0xA2, 0xF0])),
                         0xA2F0)

    def test_operands(self):
        ins = bytes([0x8A, 0xB4])
        self.assertEqual((vx(ins), vy(ins), n(ins), kk(ins), nnn(ins)),
                         (0xA, 0xB, 0x4, 0xB4, 0xAB4))


class TestPattern(unittest.TestCase):
    def test_most_specific_first(self):
        self.assertEqual(pattern(0x00E0), 0x00E0)
        self.assertEqual(pattern(0x00EE), 0x00EE)
        self.assertEqual(pattern(0x8AB4), 0x8004)
        self.assertEqual(pattern(0x8ABE), 0x800E)
        self.assertEqual(pattern(0xF30A), 0xF00A)
        self.assertEqual(pattern(0xE59E), 0xE09E)

    def test_single_nibble_families(self):
        self.assertEqual(pattern(0x1234), 0x1000)
        self.assertEqual(pattern(0xD125), 0xD000)
        self.assertEqual(pattern(0xC0FF), 0xC000)

    def test_register_compare_needs_zero_low_nibble(self):
        self.assertEqual(pattern(0x5120), 0x5000)
        self.assertEqual(pattern(0x9120), 0x9000)
        with self.assertRaises(UnknownOpcodeError):
            pattern(0x5121)
        with self.assertRaises(UnknownOpcodeError):
            pattern(0x912F)

    def test_unknown(self):
        for opcode in (0x0000, 0x0123, 0x00E1, 0x8008, 0xE0FF, 0xF0FF):
            with self.assertRaises(UnknownOpcodeError) as ctx:
                pattern(opcode)
            self.assertEqual(ctx.exception.opcode, opcode)


if __name__ == "__main__":
    unittest.main()
