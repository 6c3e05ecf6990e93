# CHIP-8 INFO
# https://chip-8.github.io/extensions/#chip-8
# https://chip-8.github.io/links/
#
# TEST SUITE
# https://github.com/Timendus/chip8-test-suite


import argparse
import sys

import os
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "no welcome message"   # this env var disable pygame's welcome message when imported
import pygame
from pygame.locals import (
    K_0, K_1, K_2, K_3,
    K_4, K_5, K_6, K_7,
    K_8, K_9, K_a, K_b,
    K_c, K_d, K_e, K_f,
    K_i, K_o, K_p, K_q,
    K_r, K_s, K_u, K_v,
    K_w, K_x, K_z,
)

from chip8_cpu import DEBUG, Chip8
from chip8_framebuffer import SCREEN_HEIGHT, SCREEN_WIDTH, Framebuffer
from chip8_keypad import Keypad
from chip8_machine import Chip8Error, Machine, UnknownOpcodeError


# ******************** STATIC SECTION
KEY_LAYOUTS = {
    # keys 0-9 and A-F are the hex keys themselves
    "hex": {
        K_0: 0x0, K_1: 0x1, K_2: 0x2, K_3: 0x3,
        K_4: 0x4, K_5: 0x5, K_6: 0x6, K_7: 0x7,
        K_8: 0x8, K_9: 0x9, K_a: 0xA, K_b: 0xB,
        K_c: 0xC, K_d: 0xD, K_e: 0xE, K_f: 0xF,
    },
    # 1 2 3 C / 4 5 6 D / 7 8 9 E / A 0 B F
    "qwerty": {
        K_q: 0x1, K_w: 0x2, K_e: 0x3, K_r: 0xC,
        K_a: 0x4, K_s: 0x5, K_d: 0x6, K_f: 0xD,
        K_z: 0x7, K_x: 0x8, K_c: 0x9, K_v: 0xE,
        K_u: 0xA, K_i: 0x0, K_o: 0xB, K_p: 0xF,
    },
}

DEFAULT_LAYOUT = "hex"
CYCLES_PER_SECOND = 60
SCALE = 15
BLUE = (80, 69, 155)
LIGHT_BLUE = (136, 126, 203)


# ******************** UTILITIES SECTION
def get_args(argv=None):
    parser = argparse.ArgumentParser(description="CHIP-8 interpreter")
    parser.add_argument("-f", "--file", required=True, help="input rom file")
    parser.add_argument("-s", "--scale", type=int, default=SCALE, help="size in pixels of a CHIP-8 pixel")
    parser.add_argument("--hz", type=int, default=CYCLES_PER_SECOND, help="instructions executed per second")
    parser.add_argument("-l", "--layout", choices=sorted(KEY_LAYOUTS), default=DEFAULT_LAYOUT,
                        help="physical keys used for the hex keypad")
    return parser.parse_args(argv)

def read_rom(path):
    """read the whole ROM file from the user specified path"""
    with open(path, mode='rb') as f:
        return f.read()

def handle_key(keypad, key_mappings, event):
    """reflect a KEYDOWN/KEYUP event on the keypad, return False if the event isn't a mapped key"""
    if event.key not in key_mappings:
        return False
    keypad[key_mappings[event.key]] = event.type == pygame.KEYDOWN
    return True


# ******************** I/O SECTION
class Screen:
    def __init__(self, w=SCREEN_WIDTH, h=SCREEN_HEIGHT, s=SCALE, bg_color=BLUE, fg_color=LIGHT_BLUE):
        self.w, self.h, self.scale = w, h, s
        self.background = pygame.Color(*bg_color)
        self.foreground = pygame.Color(*fg_color)
        self.surface = pygame.display.set_mode(
            (w * self.scale, h * self.scale),
        )
        self.surface.fill(self.background)

    def render(self, framebuffer):
        """paint the whole framebuffer, the change is visible right away"""
        self.surface.fill(self.background)
        for x, y in framebuffer.lit_pixels():
            pygame.draw.rect(
                self.surface,
                self.foreground,
                (x * self.scale, y * self.scale, self.scale, self.scale)
            )
        pygame.display.flip()


# ******************** ENTRY POINT SECTION
def main(argv=None):
    args = get_args(argv)
    try:
        machine = Machine(read_rom(args.file))
    except (OSError, Chip8Error) as e:
        sys.exit(f"Cannot load the ROM at path {args.file}: {e}")
    if DEBUG: print(f"The ROM at path {args.file} has been loaded successfully")
    # pygame initialization
    pygame.init()
    clock = pygame.time.Clock()
    pygame.display.set_caption(os.path.basename(args.file))
    # IO
    s = Screen(s=args.scale)
    k = Keypad()
    fb = Framebuffer()
    key_mappings = KEY_LAYOUTS[args.layout]
    # CPU
    chip = Chip8(machine, fb, k)
    # emulation loop
    run = True
    while run:
        clock.tick(args.hz)
        # process user input
        # loop through the event queue
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                run = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                run = False
            elif event.type in (pygame.KEYDOWN, pygame.KEYUP):
                handle_key(k, key_mappings, event)
        try:
            chip.cycle()        # emulate one machine cycle (fetch opcode, decode opcode, execute opcode)
        except UnknownOpcodeError as uoe:
            print(f"WARNING: {uoe}, skipped", file=sys.stderr)
        except Chip8Error as ce:
            pygame.quit()
            sys.exit(f"********** THE EMULATOR CRASHED: {ce}\n{chip}")
        if chip.draw:
            s.render(fb)
        chip.tick_timers()
    pygame.quit()


if __name__ == "__main__":
    main()
