# CHIP8 Virtual Machine
# Input - a 16-key snapshot handed to cycle() every tick.
# Output - 64x32 framebuffer snapshot, a "frame changed" flag & a beep flag.
# CPU - Cowgod's CHIP8 Technical reference http://devernay.free.fr/hacks/chip8/C8TECH10.HTM#0.0
# Memory - 4096 bytes which includes: the fonts (0x000) and the loaded program (0x200..).
#----------------------------------------------------------------------------------------------
# Registers are 16 bytes V0..VF, plus the I register. Two timers count down once per cycle.
# The stack holds up to 16 return addresses. Every handler returns a PcEffect
# (next / skip / jump) and cycle() is the only place the program counter moves.

import random
from collections import namedtuple

from .config import (
    FONTSET, FONT_START, FONT_GLYPH_SIZE, INDEX_OVERFLOW_LIMIT, KEY_COUNT,
    MAX_PROGRAM_SIZE, MEMORY_SIZE, OPCODE_SIZE, PROGRAM_START, REGISTER_COUNT, log,
)
from .errors import Chip8Error, MemoryAccessError, ProgramTooLargeError
from .framebuffer import FrameBuffer
from .opcodes import NEXT, decode, jump, lookup, mnemonic, skip_if
from .stack import CallStack

OutputState = namedtuple("OutputState", "display display_changed beep")


class Chip8:

    def __init__(self, rng=None, index_overflow_flag=False):
        # Fx1E quirk: set VF when I runs past INDEX_OVERFLOW_LIMIT
        self.index_overflow_flag = index_overflow_flag
        self.rng = rng if rng is not None else random.Random()
        self.program = b""

        self._init_state()

    def _init_state(self):
        self.memory = bytearray(MEMORY_SIZE)
        self.V = [0] * REGISTER_COUNT
        self.I = 0
        self.pc = PROGRAM_START
        self.stack = CallStack()
        self.delay_timer = 0
        self.sound_timer = 0
        self.display = FrameBuffer()
        self.keys = (False,) * KEY_COUNT

        # Fx0A state: while set, cycle() only scans the keypad
        self.key_wait = False
        self.key_register = 0

        # Load fontset into memory
        self.memory[FONT_START:FONT_START + len(FONTSET)] = bytes(FONTSET)

    @property
    def waiting_for_key(self):
        return self.key_wait

    # ---- Load ROM ----
    def load_program(self, data):
        data = bytes(data)
        if len(data) > MAX_PROGRAM_SIZE:
            raise ProgramTooLargeError(
                f"Program is {len(data)} bytes, only {MAX_PROGRAM_SIZE} fit in memory"
            )
        self.memory[PROGRAM_START:] = bytes(MAX_PROGRAM_SIZE)
        self.memory[PROGRAM_START:PROGRAM_START + len(data)] = data
        self.program = data
        log("Loaded program:", len(data), "bytes")

    def reset(self):
        """Back to power-on state with the last loaded program reloaded."""
        self._init_state()
        if self.program:
            self.load_program(self.program)

    # ---- Cycle ----
    def cycle(self, keys):
        if len(keys) != KEY_COUNT:
            raise ValueError(f"Keypad snapshot needs {KEY_COUNT} keys, got {len(keys)}")
        self.keys = tuple(bool(k) for k in keys)
        self.display.dirty = False

        if self.key_wait:
            self._poll_keypad()
        else:
            self._step()
            self._tick_timers()

        return OutputState(
            display=self.display.snapshot(),
            display_changed=self.display.dirty,
            beep=self.sound_timer > 0,
        )

    def _poll_keypad(self):
        for i, pressed in enumerate(self.keys):
            if pressed:
                self.V[self.key_register] = i
                self.key_wait = False
                log(f"Key {i:X} pressed -> V{self.key_register:X}")
                break

    def _step(self):
        pc = self.pc
        op = decode(self.fetch())

        log(f"{pc:03X}: {op.raw:04X} {mnemonic(op.raw)}")
        handler = self._dispatch(op.raw)
        if handler is None:
            log("Unknown opcode: %04X" % op.raw)
            effect = NEXT
        else:
            try:
                effect = handler(op)
            except Chip8Error as e:
                e.opcode = op.raw
                e.pc = pc
                raise

        if effect.kind == "next":
            self.pc += OPCODE_SIZE
        elif effect.kind == "skip":
            self.pc += 2 * OPCODE_SIZE
        else:
            self.pc = effect.addr

    def _dispatch(self, raw):
        name = lookup(raw)
        return getattr(self, name) if name else None

    def _tick_timers(self):
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    # ---- Memory ----
    def fetch(self):
        # guard pc bounds
        if self.pc < 0 or self.pc + 1 >= MEMORY_SIZE:
            raise MemoryAccessError("PC out of bounds: 0x%03X" % self.pc, pc=self.pc)
        return (self.memory[self.pc] << 8) | self.memory[self.pc + 1]

    def _check_range(self, addr, length):
        if addr < 0 or addr + length > MEMORY_SIZE:
            raise MemoryAccessError(
                f"Memory access out of bounds: 0x{addr:04X}..0x{addr + length - 1:04X}"
            )

    # ---- Opcode Handlers ----

    # 00E0 - CLS
    def op_CLS(self, op):
        self.display.clear()
        log("Clear the display (all pixels turned off)")
        return NEXT

    # 00EE - RET
    def op_RET(self, op):
        addr = self.stack.pop()
        log("Return to", hex(addr))
        return jump(addr)

    # 0nnn - SYS addr, ignored on modern interpreters
    def op_SYS(self, op):
        log(f"SYS call to {op.nnn:03X} ignored")
        return NEXT

    # 1nnn - Jump to address NNN
    def op_JP(self, op):
        log("Jump to address", hex(op.nnn))
        return jump(op.nnn)

    # 2nnn - Call subroutine at NNN
    def op_CALL(self, op):
        self.stack.push(self.pc + OPCODE_SIZE)
        log("Call subroutine at", hex(op.nnn))
        return jump(op.nnn)

    # 3xkk - Skip next instruction if Vx == kk
    def op_SE_Vx_kk(self, op):
        log(f"Skip if V{op.x:X} ({self.V[op.x]}) == {op.kk}")
        return skip_if(self.V[op.x] == op.kk)

    # 4xkk - Skip next instruction if Vx != kk
    def op_SNE_Vx_kk(self, op):
        log(f"Skip if V{op.x:X} ({self.V[op.x]}) != {op.kk}")
        return skip_if(self.V[op.x] != op.kk)

    # 5xy0 - Skip next instruction if Vx == Vy
    def op_SE_Vx_Vy(self, op):
        log(f"Skip if V{op.x:X} == V{op.y:X}")
        return skip_if(self.V[op.x] == self.V[op.y])

    # 6xkk - Set Vx = kk
    def op_LD_Vx_kk(self, op):
        self.V[op.x] = op.kk
        log(f"Set V{op.x:X} = {op.kk}")
        return NEXT

    # 7xkk - Add immediate, no carry flag
    def op_ADD_Vx_kk(self, op):
        self.V[op.x] = (self.V[op.x] + op.kk) & 0xFF
        log(f"Add {op.kk} to V{op.x:X}: {self.V[op.x]}")
        return NEXT

    # 8xy0..8xyE - register math. VF is always written last.
    def op_LD_Vx_Vy(self, op):
        self.V[op.x] = self.V[op.y]
        log(f"Copy V{op.y:X} ({self.V[op.y]}) into V{op.x:X}")
        return NEXT

    def op_OR(self, op):
        self.V[op.x] |= self.V[op.y]
        log(f"V{op.x:X} = V{op.x:X} OR V{op.y:X} -> {self.V[op.x]}")
        return NEXT

    def op_AND(self, op):
        self.V[op.x] &= self.V[op.y]
        log(f"V{op.x:X} = V{op.x:X} AND V{op.y:X} -> {self.V[op.x]}")
        return NEXT

    def op_XOR(self, op):
        self.V[op.x] ^= self.V[op.y]
        log(f"V{op.x:X} = V{op.x:X} XOR V{op.y:X} -> {self.V[op.x]}")
        return NEXT

    def op_ADD(self, op):
        total = self.V[op.x] + self.V[op.y]
        self.V[op.x] = total & 0xFF
        self.V[0xF] = 1 if total > 0xFF else 0
        log(f"Add V{op.y:X} to V{op.x:X}: result {self.V[op.x]}, carry={self.V[0xF]}")
        return NEXT

    def op_SUB(self, op):
        not_borrow = 1 if self.V[op.x] > self.V[op.y] else 0
        self.V[op.x] = (self.V[op.x] - self.V[op.y]) & 0xFF
        self.V[0xF] = not_borrow
        log(f"Subtract V{op.y:X} from V{op.x:X}: result {self.V[op.x]}, NOT borrow={not_borrow}")
        return NEXT

    def op_SHR(self, op):
        lsb = self.V[op.x] & 1
        self.V[op.x] >>= 1
        self.V[0xF] = lsb
        log(f"Shift V{op.x:X} right by 1: {self.V[op.x]}, least significant bit={lsb}")
        return NEXT

    def op_SUBN(self, op):
        not_borrow = 1 if self.V[op.y] > self.V[op.x] else 0
        self.V[op.x] = (self.V[op.y] - self.V[op.x]) & 0xFF
        self.V[0xF] = not_borrow
        log(f"Set V{op.x:X} = V{op.y:X} - V{op.x:X}: result {self.V[op.x]}, NOT borrow={not_borrow}")
        return NEXT

    def op_SHL(self, op):
        msb = (self.V[op.x] >> 7) & 1
        self.V[op.x] = (self.V[op.x] << 1) & 0xFF
        self.V[0xF] = msb
        log(f"Shift V{op.x:X} left by 1: {self.V[op.x]}, most significant bit={msb}")
        return NEXT

    # 9xy0 - Skip next instruction if Vx != Vy
    def op_SNE_Vx_Vy(self, op):
        log(f"Skip if V{op.x:X} != V{op.y:X}")
        return skip_if(self.V[op.x] != self.V[op.y])

    # Annn - Set I = NNN
    def op_LD_I(self, op):
        self.I = op.nnn
        log(f"Set I = {self.I:03X}")
        return NEXT

    # Bnnn - Jump to address NNN + V0
    def op_JP_V0(self, op):
        addr = op.nnn + self.V[0]
        log(f"Jump to address V0 + {op.nnn:03X} = {addr:03X}")
        return jump(addr)

    # Cxkk - Vx = random byte AND kk
    def op_RND(self, op):
        self.V[op.x] = self.rng.getrandbits(8) & op.kk
        log(f"Set V{op.x:X} = random_byte & {op.kk} -> {self.V[op.x]}")
        return NEXT

    # Dxyn - Draw n sprite rows from I at (Vx, Vy), VF = collision
    def op_DRW(self, op):
        x, y = self.V[op.x], self.V[op.y]
        self._check_range(self.I, op.n)
        rows = self.memory[self.I:self.I + op.n]
        collision = self.display.draw(x, y, rows)
        self.V[0xF] = 1 if collision else 0
        log(f"Drew sprite at ({x},{y}), height={op.n}, collision={self.V[0xF]}")
        return NEXT

    # Ex9E - Skip next instruction if key Vx is pressed
    def op_SKP(self, op):
        key = self.V[op.x]
        log(f"Skip if key {key:X} is pressed")
        return skip_if(key < len(self.keys) and self.keys[key])

    # ExA1 - Skip next instruction if key Vx is NOT pressed
    def op_SKNP(self, op):
        key = self.V[op.x]
        log(f"Skip if key {key:X} is NOT pressed")
        return skip_if(not (key < len(self.keys) and self.keys[key]))

    # Fx07 - Vx = delay timer
    def op_LD_Vx_DT(self, op):
        self.V[op.x] = self.delay_timer
        log(f"Set V{op.x:X} = delay timer ({self.delay_timer})")
        return NEXT

    # Fx0A - wait for a key press; the stall happens in cycle()
    def op_WAITKEY(self, op):
        self.key_wait = True
        self.key_register = op.x
        log(f"Wait for key press -> V{op.x:X}")
        return NEXT

    # Fx15 - delay timer = Vx
    def op_LD_DT_Vx(self, op):
        self.delay_timer = self.V[op.x]
        log(f"Set delay timer = V{op.x:X} ({self.V[op.x]})")
        return NEXT

    # Fx18 - sound timer = Vx
    def op_LD_ST_Vx(self, op):
        self.sound_timer = self.V[op.x]
        log(f"Set sound timer = V{op.x:X} ({self.V[op.x]})")
        return NEXT

    # Fx1E - I += Vx
    def op_ADD_I_Vx(self, op):
        old_index = self.I
        self.I = (self.I + self.V[op.x]) & 0xFFFF
        if self.index_overflow_flag:
            self.V[0xF] = 1 if self.I > INDEX_OVERFLOW_LIMIT else 0
        log(f"Increment I by V{op.x:X}: {old_index:03X} -> {self.I:03X}")
        return NEXT

    # Fx29 - I = address of the font glyph for digit Vx
    def op_FONT(self, op):
        self.I = FONT_START + self.V[op.x] * FONT_GLYPH_SIZE
        log(f"Set I to the sprite for digit V{op.x:X} ({self.V[op.x]})")
        return NEXT

    # Fx33 - BCD of Vx at I, I+1, I+2
    def op_BCD(self, op):
        val = self.V[op.x]
        self._check_range(self.I, 3)
        self.memory[self.I] = val // 100
        self.memory[self.I + 1] = (val // 10) % 10
        self.memory[self.I + 2] = val % 10
        log(f"Store BCD of V{op.x:X} ({val}) at I, I+1, I+2")
        return NEXT

    # Fx55 - store V0..Vx (inclusive) at I
    def op_STORE(self, op):
        self._check_range(self.I, op.x + 1)
        for i in range(op.x + 1):
            self.memory[self.I + i] = self.V[i]
        log(f"Store registers V0..V{op.x:X} in memory starting at I")
        return NEXT

    # Fx65 - load V0..Vx (inclusive) from I
    def op_LOAD(self, op):
        self._check_range(self.I, op.x + 1)
        for i in range(op.x + 1):
            self.V[i] = self.memory[self.I + i]
        log(f"Load registers V0..V{op.x:X} from memory starting at I")
        return NEXT
