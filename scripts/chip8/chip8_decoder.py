from chip8_machine import UnknownOpcodeError


# ******************** STATIC SECTION
# WATCH OUT: masks order is important!!!
# the lookup stops at the first mask producing a known pattern, so the most specific masks come first
OPCODE_MASKS = {
    0xFFFF: [0x00E0, 0x00EE],
    0xF0FF: [0xE09E, 0xE0A1, 0xF007, 0xF00A, 0xF015, 0xF018, 0xF01E, 0xF029, 0xF033, 0xF055, 0xF065],
    0xF00F: [0x5000, 0x8000, 0x8001, 0x8002, 0x8003, 0x8004, 0x8005, 0x8006, 0x8007, 0x800E, 0x9000],
    0xF000: [0x1000, 0x2000, 0x3000, 0x4000, 0x6000, 0x7000, 0xA000, 0xB000, 0xC000, 0xD000],
}


# ******************** FIELDS SECTION
def nibble(instruction, position):
    """return one of the four 4-bit fields of a 2-byte instruction, position 0 being the high nibble of byte 0"""
    byte = instruction[position // 2]
    return (byte >> 4) & 0xF if position % 2 == 0 else byte & 0xF

def bit(byte, position):
    """test a single bit of a byte, position 0 being the least significant one"""
    return (byte >> position) & 0x1 == 1

def opcode_value(instruction):
    """combine both bytes of an instruction into its 16-bit opcode"""
    return (instruction[0] << 8) | instruction[1]


# ******************** OPERANDS SECTION
# PURPOSE: the usual CHIP-8 operand names, so handlers read like the opcode tables
def vx(instruction):
    return nibble(instruction, 1)

def vy(instruction):
    return nibble(instruction, 2)

def kk(instruction):
    return instruction[1]

def nnn(instruction):
    return opcode_value(instruction) & 0x0FFF

def n(instruction):
    return nibble(instruction, 3)


# ******************** DECODING SECTION
def pattern(opcode):
    """decode opcodes using masks and return the pattern identifying the instruction family"""
    for mask, patterns in OPCODE_MASKS.items():
        if (opcode & mask) in patterns:
            return opcode & mask
    raise UnknownOpcodeError(opcode)
