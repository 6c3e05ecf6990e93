# CHIP-8 INFO
# https://chip-8.github.io/extensions/#chip-8
# http://devernay.free.fr/hacks/chip8/C8TECH10.HTM
#
# MASTERING CHIP-8
# https://github.com/mattmikolay/chip-8/wiki/Mastering-CHIP%E2%80%908


import os
from functools import wraps

from chip8_decoder import bit, kk, n, nnn, opcode_value, pattern, vx, vy
from chip8_framebuffer import Framebuffer
from chip8_keypad import Keypad
from chip8_machine import (
    ADDRESS_MASK,
    FONT_GLYPH_SIZE,
    Machine,
    StackOverflowError,
    StackUnderflowError,
    UnknownOpcodeError,
)


DEBUG = True if int(os.getenv('DEBUG', 0)) >= 1 else False


# ******************** UTILITIES SECTION
def asm(msg):
    """decorator to print out the ASM of the instruction being called"""
    def decorator(fn):
        @wraps(fn)
        def wrapper_fn(*args, **kwargs):
            mem_addr = args[0].mem_addr     # args[0] equals self of the decorated method
            vals = fn(*args, **kwargs)      # use the locals() values of each decorated function in the print
            vals['mem_addr'] = mem_addr
            if DEBUG: print(msg.format(**vals))
        return wrapper_fn
    return decorator


# ******************** CPU SECTION
class Chip8:
    def __init__(self, m=None, s=None, k=None):
        self.machine = m if m is not None else Machine()
        self.screen = s if s is not None else Framebuffer()
        self.keypad = k if k is not None else Keypad()
        self.mem_addr = self.machine.pc    # address of the instruction being executed
        self.draw = False
        self.instructions = {
            0x00E0: self._clear_screen,
            0x00EE: self._return,
            0x1000: self._jump,
            0x2000: self._call_addr,
            0x3000: self._skip_if_eq,
            0x4000: self._skip_if_not_eq,
            0x5000: self._skip_if_eq_regs,
            0x6000: self._set_vk,
            0x7000: self._add_to_vk,
            0x8000: self._set_vx_to_vy,
            0x8001: self._set_vx_or_vy,
            0x8002: self._set_vx_and_vy,
            0x8003: self._set_vx_xor_vy,
            0x8004: self._add_vx_vy,
            0x8005: self._sub_vx_vy,
            0x8006: self._shr,
            0x8007: self._subn_vx_vy,
            0x800E: self._shl,
            0x9000: self._skip_if_not_eq_regs,
            0xA000: self._set_idx,
            0xB000: self._jump_plus,
            0xC000: self._random_byte_and,
            0xD000: self._to_screen,
            0xE09E: self._skip_if_pressed,
            0xE0A1: self._skip_if_not_pressed,
            0xF007: self._set_vx_dt,
            0xF00A: self._wait_keypress,
            0xF015: self._set_dt_vx,
            0xF018: self._set_st,
            0xF01E: self._add_to_idx,
            0xF029: self._select_char,
            0xF033: self._bcd_repr,
            0xF055: self._store_vregs,
            0xF065: self._load_vregs,
        }

    def __str__(self):
        return f"{self.machine}\nKEYPAD:{self.keypad!r}\nDRAW: {self.draw}"

    @property
    def awaiting_key(self):
        """True while an Fx0A instruction is waiting for a key press"""
        return self.machine.awaiting_key is not None

    # ********** FLOW CONTROL
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: RET")
    def _return(self, ins):
        """return from a subroutine"""
        m = self.machine
        m.pc = m.stack.pop(self.mem_addr)
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: JP 0x{address:04x}")
    def _jump(self, ins):
        address = nnn(ins)
        self.machine.pc = address
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: CALL 0x{address:04x}")
    def _call_addr(self, ins):
        m = self.machine
        address = nnn(ins)
        m.stack.append(m.pc, self.mem_addr)     # pc already points to the instruction after the CALL
        m.pc = address
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: JP V0, 0x{address:04x}")
    def _jump_plus(self, ins):
        m = self.machine
        address = nnn(ins)
        m.pc = (address + m.v_regs[0x0]) & ADDRESS_MASK
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SE V{x}, {comparison_value}")
    def _skip_if_eq(self, ins):
        x, comparison_value = vx(ins), kk(ins)
        if self.machine.v_regs[x] == comparison_value:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SNE V{x}, {comparison_value}")
    def _skip_if_not_eq(self, ins):
        x, comparison_value = vx(ins), kk(ins)
        if self.machine.v_regs[x] != comparison_value:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SE V{x}, V{y}")
    def _skip_if_eq_regs(self, ins):
        x, y = vx(ins), vy(ins)
        if self.machine.v_regs[x] == self.machine.v_regs[y]:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SNE V{x}, V{y}")
    def _skip_if_not_eq_regs(self, ins):
        x, y = vx(ins), vy(ins)
        if self.machine.v_regs[x] != self.machine.v_regs[y]:
            self._goto_next_instruction()
        return locals()

    # ********** REGISTERS
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD V{x}, {value}")
    def _set_vk(self, ins):
        """set the value of one of the 16 variable registers, Vx"""
        x, value = vx(ins), kk(ins)
        self.machine.v_regs[x] = value
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: ADD V{x}, {value}")
    def _add_to_vk(self, ins):
        """add to the value already present in one of the variable registers, VF is left alone"""
        v = self.machine.v_regs
        x, value = vx(ins), kk(ins)
        v[x] = (v[x] + value) & 0xFF    # keep only the lowest 8 bits from the result and store them in Vx
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD V{x}, V{y}")
    def _set_vx_to_vy(self, ins):
        """set the value of Vx equal to that of Vy"""
        x, y = vx(ins), vy(ins)
        self.machine.v_regs[x] = self.machine.v_regs[y]
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: OR V{x}, V{y}")
    def _set_vx_or_vy(self, ins):
        x, y = vx(ins), vy(ins)
        self.machine.v_regs[x] |= self.machine.v_regs[y]
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: AND V{x}, V{y}")
    def _set_vx_and_vy(self, ins):
        x, y = vx(ins), vy(ins)
        self.machine.v_regs[x] &= self.machine.v_regs[y]
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: XOR V{x}, V{y}")
    def _set_vx_xor_vy(self, ins):
        x, y = vx(ins), vy(ins)
        self.machine.v_regs[x] ^= self.machine.v_regs[y]
        return locals()

    # VF is always written after Vx, so when x is 0xF the flag is what survives
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: ADD V{x}, V{y}")
    def _add_vx_vy(self, ins):
        """set the value of Vx to Vx + Vy, VF = carry"""
        v = self.machine.v_regs
        x, y = vx(ins), vy(ins)
        total = v[x] + v[y]     # untruncated, the carry comes from here
        v[x] = total & 0xFF
        v[0xF] = 1 if total > 255 else 0
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SUB V{x}, V{y}")
    def _sub_vx_vy(self, ins):
        """set the value of Vx to Vx - Vy, VF = NOT borrow"""
        v = self.machine.v_regs
        x, y = vx(ins), vy(ins)
        no_borrow = 1 if v[x] > v[y] else 0
        v[x] = (v[x] - v[y]) & 0xFF
        v[0xF] = no_borrow
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SHR V{x} 1")
    def _shr(self, ins):
        """set Vx equal to Vx SHR 1, VF = the bit shifted out"""
        v = self.machine.v_regs
        x = vx(ins)
        lsb = 1 if bit(v[x], 0) else 0
        v[x] = v[x] >> 1
        v[0xF] = lsb
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SUBN V{x}, V{y}")
    def _subn_vx_vy(self, ins):
        """set the value of Vx to Vy - Vx, VF = NOT borrow"""
        v = self.machine.v_regs
        x, y = vx(ins), vy(ins)
        no_borrow = 1 if v[y] > v[x] else 0
        v[x] = (v[y] - v[x]) & 0xFF
        v[0xF] = no_borrow
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SHL V{x} 1")
    def _shl(self, ins):
        """set Vx equal to Vx SHL 1, VF = the bit shifted out"""
        v = self.machine.v_regs
        x = vx(ins)
        msb = 1 if bit(v[x], 7) else 0
        v[x] = (v[x] << 1) & 0xFF   # multiply by 2 and keep only the lowest 8 bits from the result
        v[0xF] = msb
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: RND V{x}, 0x{mask:02x}")
    def _random_byte_and(self, ins):
        x, mask = vx(ins), kk(ins)
        rnd = self.machine.random_byte()
        self.machine.v_regs[x] = rnd & mask
        return locals()

    # ********** INDEX REGISTER AND MEMORY
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD I, 0x{value:04x}")
    def _set_idx(self, ins):
        """set the value of the I register"""
        value = nnn(ins)
        self.machine.idx = value
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: ADD I, V{register}")
    def _add_to_idx(self, ins):
        """set I = I + Vx, no flag is affected"""
        m = self.machine
        register = vx(ins)
        m.idx = (m.idx + m.v_regs[register]) & 0xFFFF
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD F, V{register}")
    def _select_char(self, ins):
        """set I to location of sprite for digit Vx"""
        m = self.machine
        register = vx(ins)
        m.idx = m.v_regs[register] * FONT_GLYPH_SIZE
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD B, V{x}")
    def _bcd_repr(self, ins):
        """store the hundreds digit of Vx in memory at I, the tens digit at I+1, the ones digit at I+2"""
        m = self.machine
        x = vx(ins)
        value = m.v_regs[x]
        hundreds, tens, ones = value // 100, (value // 10) % 10, value % 10
        m.mem.write(m.idx, [hundreds, tens, ones])
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD [I], V{x}")
    def _store_vregs(self, ins):
        """store registers V0 through Vx (included) in memory starting at location I"""
        m = self.machine
        x = vx(ins)
        m.mem.write(m.idx, m.v_regs[:x+1])
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD V{x}, [I]")
    def _load_vregs(self, ins):
        """read registers V0 through Vx (included) from memory starting at location I"""
        m = self.machine
        x = vx(ins)
        m.v_regs[:x+1] = m.mem.read(m.idx, x + 1)
        return locals()

    # ********** TIMERS
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD V{x}, DT")
    def _set_vx_dt(self, ins):
        """set Vx = DT (delay timer) value"""
        x = vx(ins)
        self.machine.v_regs[x] = self.machine.dt
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD DT, V{x}")
    def _set_dt_vx(self, ins):
        """set DT (delay timer) = Vx"""
        x = vx(ins)
        self.machine.dt = self.machine.v_regs[x]
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD ST, V{register}")
    def _set_st(self, ins):
        """sound is not emulated, the instruction does nothing"""
        register = vx(ins)
        return locals()

    # ********** KEYPAD
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SKP V{x}")
    def _skip_if_pressed(self, ins):
        """skip the following instruction if the key corresponding to the hex value stored in Vx is pressed"""
        x = vx(ins)
        key = self.machine.v_regs[x]
        if self.keypad[key]:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SKNP V{x}")
    def _skip_if_not_pressed(self, ins):
        """skip the following instruction if the key corresponding to the hex value stored in Vx is NOT pressed"""
        x = vx(ins)
        key = self.machine.v_regs[x]
        if not self.keypad[key]:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD V{x}, K")
    def _wait_keypress(self, ins):
        """wait for a key press and store its value in Vx"""
        m = self.machine
        x = vx(ins)
        key = self.keypad.first()
        if key is None:
            m.awaiting_key = x
            m.pc = self.mem_addr    # stay on the same instruction until a key is pressed
        else:
            m.v_regs[x] = key
        return locals()

    # ********** DISPLAY
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: CLS")
    def _clear_screen(self, ins):
        self.screen.clear()
        self.draw = True
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: DRW V{x}, V{y}, {n_bytes}")
    def _to_screen(self, ins):
        """display n-byte sprite starting at memory location I at (Vx, Vy), set VF = collision"""
        m = self.machine
        x, y, n_bytes = vx(ins), vy(ins), n(ins)
        x_origin, y_origin = m.v_regs[x], m.v_regs[y]
        collision = False
        # step through each sprite byte, one row each
        for i, sprite_byte in enumerate(m.mem.read(m.idx, n_bytes)):
            # step through each byte's bits, most significant one first
            for j in range(8):
                # sprites are XORed onto the existing screen and if this
                # causes any pixel to be erased then VF=1, otherwise VF=0
                if self.screen.xor_pixel(x_origin + j, y_origin + i, bit(sprite_byte, 7 - j)):
                    collision = True
        m.v_regs[0xF] = 1 if collision else 0
        self.draw = True
        return locals()

    # ********** EXECUTION
    def _goto_next_instruction(self):
        self.machine.pc = (self.machine.pc + 0x2) & ADDRESS_MASK    # PC wraps at the end of memory

    def decode(self, opcode):
        """decode opcodes using masks and return respective function"""
        return self.instructions[pattern(opcode)]

    def fetch(self):
        """read the 2 bytes instruction PC points to"""
        m = self.machine
        return bytes(m.mem.read(m.pc, 2))

    def _resume_keypress(self):
        """complete a pending Fx0A as soon as a key is pressed, return True if it did"""
        m = self.machine
        key = self.keypad.first()
        if key is None:
            return False
        m.v_regs[m.awaiting_key] = key
        m.awaiting_key = None
        self._goto_next_instruction()
        return True

    def cycle(self):
        """
        emulate one machine cycle: fetch, decode and execute exactly one instruction
        an unknown opcode is skipped, the error is raised after PC moved past it
        stack errors leave PC on the faulting CALL/RET
        """
        self.draw = False
        if self.machine.awaiting_key is not None:
            self._resume_keypress()
            return
        # fetch (each instruction is two bytes long)
        self.mem_addr = self.machine.pc
        ins = self.fetch()
        self._goto_next_instruction()
        # decode + execute
        opcode = opcode_value(ins)
        try:
            instruction = self.decode(opcode)
        except UnknownOpcodeError:
            raise UnknownOpcodeError(opcode, self.mem_addr) from None
        try:
            instruction(ins)
        except (StackOverflowError, StackUnderflowError):
            self.machine.pc = self.mem_addr
            raise

    def tick_timers(self):
        """delay timer update, the driver calls it once per cycle"""
        self.machine.decrement_dt()
