import unittest
from chip8_keypad import Keypad


class TestKeypad(unittest.TestCase):
    def test_nothing_pressed(self):
        k = Keypad()
        self.assertFalse(any(k[key] for key in range(16)))
        self.assertIsNone(k.first())

    def test_press_and_release(self):
        k = Keypad()
        k[0xA] = True
        self.assertTrue(k[0xA])
        k[0xA] = False
        self.assertFalse(k[0xA])

    def test_reading_does_not_consume(self):
        k = Keypad()
        k[3] = True
        self.assertTrue(k[3])
        self.assertTrue(k[3])

    def test_first_is_lowest(self):
        k = Keypad()
        k[0xC] = True
        k[0x4] = True
        self.assertEqual(k.first(), 0x4)

    def test_keys_out_of_range(self):
        self.assertFalse(Keypad()[0x10])


if __name__ == "__main__":
    unittest.main()
