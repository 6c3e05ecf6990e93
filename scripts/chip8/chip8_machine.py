import random


# ******************** STATIC SECTION
C8_FONTS = [0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
            0x20, 0x60, 0x20, 0x20, 0x70,  # 1
            0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
            0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
            0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
            0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
            0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
            0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
            0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
            0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
            0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
            0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
            0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
            0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
            0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
            0xF0, 0x80, 0xF0, 0x80, 0x80]  # F

FONT_GLYPH_SIZE = 5
MEMORY_SIZE = 4096
ADDRESS_MASK = 0x0FFF
ROM_START_ADDRESS = 0x200
MAX_ROM_SIZE = MEMORY_SIZE - ROM_START_ADDRESS
STACK_SIZE = 16
REGISTERS_COUNT = 16


# ******************** ERRORS SECTION
class Chip8Error(Exception):
    """base class of every condition the interpreter reports to its driver"""

class RomTooLargeError(Chip8Error):
    def __init__(self, size):
        self.size = size
        super().__init__(f"The ROM is {size} bytes long, at most {MAX_ROM_SIZE} bytes fit in memory")

class StackOverflowError(Chip8Error):
    def __init__(self, address):
        self.address = address
        super().__init__(f"CALL at 0x{address:04x}: the CHIP-8 stack can contain at most {STACK_SIZE} addresses")

class StackUnderflowError(Chip8Error):
    def __init__(self, address):
        self.address = address
        super().__init__(f"RET at 0x{address:04x}: there is no subroutine to return from")

class UnknownOpcodeError(Chip8Error):
    def __init__(self, opcode, address=None):
        self.opcode = opcode
        self.address = address
        where = "" if address is None else f" at 0x{address:04x}"
        super().__init__(f"Unknown opcode 0x{opcode:04x}{where}")


# ******************** MEMORY SECTION
# ********** WRAPS A LIST TO REPRESENT A STACK WITH A LIMITED SIZE OF 16 ADDRESSES
class Stack:
    def __init__(self):
        self.addr_list = [0] * STACK_SIZE
        self.sp = 0

    def __len__(self):
        return self.sp

    def __repr__(self):
        return f"Stack(sp={self.sp}, addresses={[hex(a) for a in self.addr_list[:self.sp]]})"

    def append(self, address, pc=0):
        """push a return address, pc is only used to report where an overflow happened"""
        if self.sp >= STACK_SIZE:
            raise StackOverflowError(pc)
        self.addr_list[self.sp] = address
        self.sp += 1

    def pop(self, pc=0):
        if self.sp == 0:
            raise StackUnderflowError(pc)
        self.sp -= 1
        return self.addr_list[self.sp]

# ********** WRAPS A LIST TO REPRESENT THE MAIN MEMORY WITH A LIMITED SIZE OF 4KB
class Memory:
    def __init__(self):
        self.inner = [0] * MEMORY_SIZE
        self.inner[0x00:0x00+len(C8_FONTS)] = C8_FONTS

    def __len__(self):
        return len(self.inner)

    def __setitem__(self, key, value):
        # addresses are 12 bits wide, anything beyond wraps around
        self.inner[key & ADDRESS_MASK] = value & 0xFF

    def __getitem__(self, index):
        return self.inner[index & ADDRESS_MASK]

    def read(self, address, count):
        """read count consecutive bytes starting at address, wrapping at the end of memory"""
        return [self[address + i] for i in range(count)]

    def write(self, address, values):
        """write the given bytes starting at address, wrapping at the end of memory"""
        for i, value in enumerate(values):
            self[address + i] = value

    def load_rom(self, rom):
        """copy the ROM image verbatim at ROM_START_ADDRESS, nothing is copied if it doesn't fit"""
        if len(rom) > MAX_ROM_SIZE:
            raise RomTooLargeError(len(rom))
        self.inner[ROM_START_ADDRESS:ROM_START_ADDRESS+len(rom)] = list(rom)


# ******************** STATE SECTION
class Machine:
    """
    the whole CHIP-8 state: memory, registers, stack and delay timer
    it's created once at startup with the ROM already loaded and mutated in place by the CPU
    """

    def __init__(self, rom=b"", rng=None):
        self.mem = Memory()
        self.mem.load_rom(rom)
        self.stack = Stack()
        self.v_regs = [0] * REGISTERS_COUNT
        self.pc = ROM_START_ADDRESS
        self.idx = 0    # specify where the sprites reside in memory
        self.dt = 0     # delay timer, active when non-zero
        self.rng = rng if rng is not None else random.Random()
        self.awaiting_key = None    # register waiting for a key press (Fx0A), None when running

    def __str__(self):
        registers = f"PC_REGISTER:0x{self.pc:04x} | IDX_REGISTER:0x{self.idx:04x} | DELAY_TIMER:{self.dt}"
        variables = f"VARIABLE_REGISTERS:{self.v_regs}"
        stack = f"STACK:{self.stack}"
        flags = f"AWAITING_KEY: {'-' if self.awaiting_key is None else f'V{self.awaiting_key:X}'}"
        return f"{registers}\n{variables}\n{stack}\n{flags}"

    @property
    def sp(self):
        return self.stack.sp

    def random_byte(self):
        return self.rng.randint(0, 255)

    def decrement_dt(self):
        """decrement the delay timer by one, it never goes below zero"""
        if self.dt > 0:
            self.dt -= 1
