KEYS_COUNT = 16


class Keypad:
    """
    the 16 keys hexadecimal keypad, one "pressed" flag per key
    flags are set and cleared by whoever handles the physical input, the CPU only reads them
    """

    def __init__(self):
        self.pressed_keys = [False] * KEYS_COUNT

    def __repr__(self):
        return f"Keypad(pressed={[hex(k) for k in range(KEYS_COUNT) if self.pressed_keys[k]]})"

    def __getitem__(self, key):
        # registers are 8 bits wide, keys above 0xF simply don't exist
        if 0 <= key < KEYS_COUNT:
            return self.pressed_keys[key]
        return False

    def __setitem__(self, key, value):
        self.pressed_keys[key] = bool(value)

    def first(self):
        """get the lowest key currently pressed, None if there isn't any"""
        for key, pressed in enumerate(self.pressed_keys):
            if pressed:
                return key
        return None
