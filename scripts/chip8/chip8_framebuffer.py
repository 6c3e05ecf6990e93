SCREEN_HEIGHT = 32
SCREEN_WIDTH = 64


class Framebuffer:
    """
    64x32 monochrome display memory, indexed as buffer[x][y]
    only CLS and DRW write into it, the renderer just reads it
    """

    def __init__(self, w=SCREEN_WIDTH, h=SCREEN_HEIGHT):
        self.w, self.h = w, h
        self.buffer = [[False] * h for _ in range(w)]

    def __getitem__(self, xy):
        x, y = xy
        return self.buffer[x][y]

    def xor_pixel(self, x, y, value):
        """
        XOR a sprite bit onto the pixel at (x, y), coordinates wrap around each axis
        return True if a pixel that was ON got erased (collision)
        """
        x, y = x % self.w, y % self.h
        old = self.buffer[x][y]
        self.buffer[x][y] = old != bool(value)
        return old and bool(value)

    def clear(self):
        # rows are cleared in place, the buffer itself is never reallocated
        for column in self.buffer:
            for y in range(self.h):
                column[y] = False

    def lit_pixels(self):
        """yield the (x, y) coordinates of every pixel which is ON"""
        for x, column in enumerate(self.buffer):
            for y, pixel in enumerate(column):
                if pixel:
                    yield x, y
