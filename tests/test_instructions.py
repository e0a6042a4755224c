import random

import pytest

from chip8.config import FONTSET
from chip8.cpu import Chip8
from chip8.errors import MemoryAccessError, StackOverflowError, StackUnderflowError

from conftest import NO_KEYS, SEED, as_program


# ---- flow control ----

def test_clear_screen(cpu, run):
    cpu.display.draw(0, 0, [0xFF])
    out = run(0x00E0)
    assert cpu.display.is_blank()
    assert out.display_changed
    assert cpu.pc == 0x202


def test_sys_is_ignored(cpu, run):
    run(0x0123)
    assert cpu.pc == 0x202


def test_jump(cpu, run):
    run(0x1300)
    assert cpu.pc == 0x300


def test_call_then_return_lands_after_call_site(cpu, run):
    # 0x200 CALL 0x206 / 0x202 SYS / 0x204 SYS / 0x206 RET
    run(0x2206, 0x0000, 0x0000, 0x00EE, cycles=1)
    assert cpu.pc == 0x206
    assert list(cpu.stack) == [0x202]
    cpu.cycle(NO_KEYS)
    assert cpu.pc == 0x202
    assert len(cpu.stack) == 0


def test_return_on_empty_stack_is_fatal(cpu, run):
    with pytest.raises(StackUnderflowError) as exc:
        run(0x00EE)
    assert exc.value.opcode == 0x00EE
    assert exc.value.pc == 0x200
    assert "opcode=0x00EE" in str(exc.value)
    assert cpu.pc == 0x200


def test_call_past_16_levels_is_fatal(cpu, run):
    # 0x200 calls itself forever
    run(0x2200, cycles=16)
    assert len(cpu.stack) == 16
    with pytest.raises(StackOverflowError) as exc:
        cpu.cycle(NO_KEYS)
    assert exc.value.opcode == 0x2200
    assert exc.value.pc == 0x200


def test_jump_plus_v0(cpu, run):
    cpu.V[0] = 4
    run(0xB300)
    assert cpu.pc == 0x304


# ---- skips ----

@pytest.mark.parametrize("opcode, vx, expected_pc", [
    (0x3005, 5, 0x204),
    (0x3005, 6, 0x202),
    (0x4005, 5, 0x202),
    (0x4005, 6, 0x204),
])
def test_skip_against_immediate(cpu, run, opcode, vx, expected_pc):
    cpu.V[0] = vx
    run(opcode)
    assert cpu.pc == expected_pc


@pytest.mark.parametrize("opcode, v0, v1, expected_pc", [
    (0x5010, 7, 7, 0x204),
    (0x5010, 7, 8, 0x202),
    (0x9010, 7, 7, 0x202),
    (0x9010, 7, 8, 0x204),
])
def test_skip_against_register(cpu, run, opcode, v0, v1, expected_pc):
    cpu.V[0], cpu.V[1] = v0, v1
    run(opcode)
    assert cpu.pc == expected_pc


def test_unknown_opcode_is_a_noop(cpu, run):
    cpu.V[0] = cpu.V[1] = 7
    run(0x5011)
    assert cpu.pc == 0x202
    assert cpu.V[:2] == [7, 7]


# ---- loads and arithmetic ----

def test_load_and_add_immediate(cpu, run):
    run(0x6A12, 0x7A01)
    assert cpu.V[0xA] == 0x13


def test_add_immediate_wraps_without_touching_vf(cpu, run):
    cpu.V[0] = 0xFF
    cpu.V[0xF] = 7
    run(0x7002)
    assert cpu.V[0] == 1
    assert cpu.V[0xF] == 7


@pytest.mark.parametrize("opcode, expected", [
    (0x8010, 0b0101),
    (0x8011, 0b1101),
    (0x8012, 0b0100),
    (0x8013, 0b1001),
])
def test_register_logic(cpu, run, opcode, expected):
    cpu.V[0], cpu.V[1] = 0b1100, 0b0101
    run(opcode)
    assert cpu.V[0] == expected


@pytest.mark.parametrize("a, b", [(0, 0), (1, 2), (250, 5), (250, 6), (250, 10), (255, 255), (128, 128)])
def test_add_wraps_and_sets_carry(cpu, run, a, b):
    cpu.V[0], cpu.V[1] = a, b
    run(0x8014)
    assert cpu.V[0] == (a + b) % 256
    assert cpu.V[0xF] == (1 if a + b > 255 else 0)


def test_add_example(cpu, run):
    cpu.V[0], cpu.V[1] = 250, 10
    run(0x8014)
    assert cpu.V[0] == 4
    assert cpu.V[0xF] == 1


def test_add_into_vf_keeps_the_flag(cpu, run):
    cpu.V[0xF], cpu.V[1] = 200, 100
    run(0x8F14)
    assert cpu.V[0xF] == 1
    cpu.V[0xF], cpu.V[1] = 1, 2
    cpu.pc = 0x200
    cpu.cycle(NO_KEYS)
    assert cpu.V[0xF] == 0


@pytest.mark.parametrize("a, b, result, flag", [
    (10, 3, 7, 1),
    (3, 10, 249, 0),
    (5, 5, 0, 0),
    (0, 1, 255, 0),
])
def test_sub(cpu, run, a, b, result, flag):
    cpu.V[0], cpu.V[1] = a, b
    run(0x8015)
    assert cpu.V[0] == result
    assert cpu.V[0xF] == flag


@pytest.mark.parametrize("a, b, result, flag", [
    (3, 10, 7, 1),
    (10, 3, 249, 0),
    (5, 5, 0, 0),
])
def test_subn(cpu, run, a, b, result, flag):
    cpu.V[0], cpu.V[1] = a, b
    run(0x8017)
    assert cpu.V[0] == result
    assert cpu.V[0xF] == flag


@pytest.mark.parametrize("opcode", [0x8225, 0x8227])
def test_sub_with_same_register(cpu, run, opcode):
    cpu.V[2] = 9
    run(opcode)
    assert cpu.V[2] == 0
    assert cpu.V[0xF] == 0


def test_sub_into_vf_keeps_the_flag(cpu, run):
    cpu.V[0xF], cpu.V[1] = 10, 3
    run(0x8F15)
    assert cpu.V[0xF] == 1


@pytest.mark.parametrize("value, result, flag", [(0b101, 0b10, 1), (0b100, 0b10, 0), (0xFF, 0x7F, 1)])
def test_shr_flags_bit_shifted_out(cpu, run, value, result, flag):
    cpu.V[3] = value
    run(0x8306)
    assert cpu.V[3] == result
    assert cpu.V[0xF] == flag


@pytest.mark.parametrize("value, result, flag", [(0x81, 0x02, 1), (0x41, 0x82, 0), (0xFF, 0xFE, 1)])
def test_shl_flags_bit_shifted_out(cpu, run, value, result, flag):
    cpu.V[3] = value
    run(0x830E)
    assert cpu.V[3] == result
    assert cpu.V[0xF] == flag


def test_shifts_on_vf_leave_only_the_flag(cpu, run):
    cpu.V[0xF] = 2
    run(0x8F06)
    assert cpu.V[0xF] == 0
    cpu.V[0xF] = 0x40
    cpu.pc = 0x200
    cpu.load_program(as_program(0x8F0E))
    cpu.cycle(NO_KEYS)
    assert cpu.V[0xF] == 0


# ---- index, random ----

def test_set_index(cpu, run):
    run(0xA123)
    assert cpu.I == 0x123


def test_random_masks_with_kk(cpu, run):
    run(0xC50F)
    assert cpu.V[5] == random.Random(SEED).getrandbits(8) & 0x0F


def test_random_with_zero_mask(cpu, run):
    cpu.V[5] = 0xAA
    run(0xC500)
    assert cpu.V[5] == 0


# ---- draw ----

def test_draw_font_glyph(cpu, run):
    # I = glyph "0", draw at (0, 0)
    out = run(0xA000, 0xD015)
    assert cpu.V[0xF] == 0
    assert out.display_changed
    for row in range(5):
        for col in range(8):
            assert out.display[row, col] == (FONTSET[row] >> (7 - col)) & 1


def test_draw_same_sprite_twice_erases_and_sets_vf(cpu, run):
    run(0xA000, 0xD015, 0xD015)
    assert cpu.display.is_blank()
    assert cpu.V[0xF] == 1


def test_draw_uses_register_coordinates(cpu, run):
    cpu.V[2], cpu.V[3] = 63, 10
    run(0xA000, 0xD231)
    # glyph row 0 is 0xF0: columns 63, 0, 1, 2
    assert cpu.display.pixels[10, 63] == 1
    assert cpu.display.pixels[10, 0] == 1
    assert cpu.display.pixels[10, 2] == 1
    assert cpu.display.pixels[10, 3] == 0


def test_draw_clears_stale_vf(cpu, run):
    cpu.V[0xF] = 1
    run(0xA000, 0xD011)
    assert cpu.V[0xF] == 0


def test_draw_past_end_of_memory_is_fatal(cpu, run):
    with pytest.raises(MemoryAccessError) as exc:
        run(0x6F09, 0xAFFE, 0xD015)
    assert exc.value.opcode == 0xD015
    assert exc.value.pc == 0x204
    assert cpu.V[0xF] == 9


# ---- keys ----

def test_skip_if_key_pressed(cpu, run):
    keys = [False] * 16
    keys[7] = True
    cpu.V[0] = 7
    run(0xE09E, keys=keys)
    assert cpu.pc == 0x204


def test_skip_if_key_pressed_not_taken(cpu, run):
    cpu.V[0] = 7
    run(0xE09E)
    assert cpu.pc == 0x202


def test_skip_if_key_not_pressed(cpu, run):
    cpu.V[0] = 3
    run(0xE0A1)
    assert cpu.pc == 0x204


def test_skip_if_key_not_pressed_not_taken(cpu, run):
    keys = [False] * 16
    keys[3] = True
    cpu.V[0] = 3
    run(0xE0A1, keys=keys)
    assert cpu.pc == 0x202


@pytest.mark.parametrize("opcode, expected_pc", [(0xE19E, 0x204), (0xE1A1, 0x206)])
def test_key_number_past_keypad_counts_as_not_pressed(cpu, run, opcode, expected_pc):
    # 0x200 LD V1, 0x17 / 0x202 SKP or SKNP V1, with key 7 held
    keys = [False] * 16
    keys[7] = True
    run(0x6117, opcode, keys=keys)
    assert cpu.pc == expected_pc


# ---- timers ----

def test_delay_timer_roundtrip(cpu, run):
    cpu.V[0] = 10
    run(0xF015, 0xF107)
    # set to 10 then ticked once; read 9 then ticked again
    assert cpu.V[1] == 9
    assert cpu.delay_timer == 8


def test_sound_timer_drives_beep(cpu, run):
    cpu.V[0] = 2
    out = run(0xF018, 0x0000, cycles=1)
    assert cpu.sound_timer == 1
    assert out.beep
    out = cpu.cycle(NO_KEYS)
    assert cpu.sound_timer == 0
    assert not out.beep


# ---- Fx family ----

def test_add_to_index(cpu, run):
    cpu.I = 0x100
    cpu.V[0] = 0x20
    cpu.V[0xF] = 5
    run(0xF01E)
    assert cpu.I == 0x120
    assert cpu.V[0xF] == 5


@pytest.mark.parametrize("start, expected_vf", [(0xF00, 1), (0x100, 0)])
def test_add_to_index_overflow_quirk(start, expected_vf):
    cpu = Chip8(index_overflow_flag=True)
    cpu.load_program(as_program(0xF01E))
    cpu.I = start
    cpu.V[0] = 1
    cpu.cycle(NO_KEYS)
    assert cpu.I == start + 1
    assert cpu.V[0xF] == expected_vf


def test_font_address(cpu, run):
    cpu.V[4] = 0xA
    run(0xF429)
    assert cpu.I == 50


def test_bcd(cpu, run):
    cpu.V[0] = 254
    run(0xA300, 0xF033)
    assert list(cpu.memory[0x300:0x303]) == [2, 5, 4]


def test_bcd_small_value(cpu, run):
    cpu.V[0] = 7
    run(0xA300, 0xF033)
    assert list(cpu.memory[0x300:0x303]) == [0, 0, 7]


def test_bcd_past_end_of_memory_is_fatal(cpu, run):
    with pytest.raises(MemoryAccessError):
        run(0xAFFE, 0xF033)


def test_store_all_16_registers(cpu, run):
    cpu.V = list(range(1, 17))
    run(0xA300, 0xFF55)
    assert bytes(cpu.memory[0x300:0x310]) == bytes(range(1, 17))
    assert cpu.memory[0x310] == 0


def test_store_only_v0(cpu, run):
    cpu.V = list(range(1, 17))
    run(0xA300, 0xF055)
    assert cpu.memory[0x300] == 1
    assert cpu.memory[0x301] == 0


def test_load_all_16_registers(cpu):
    cpu.load_program(as_program(0xA300, 0xFF65))
    cpu.memory[0x300:0x310] = bytes(range(100, 116))
    cpu.cycle(NO_KEYS)
    cpu.cycle(NO_KEYS)
    assert cpu.V == list(range(100, 116))


def test_load_stops_at_x_inclusive(cpu):
    cpu.load_program(as_program(0xA300, 0xF265))
    cpu.memory[0x300:0x304] = bytes([9, 8, 7, 6])
    cpu.cycle(NO_KEYS)
    cpu.cycle(NO_KEYS)
    assert cpu.V[:4] == [9, 8, 7, 0]


def test_store_past_end_of_memory_is_fatal(cpu, run):
    with pytest.raises(MemoryAccessError):
        run(0xAFF8, 0xFF55)
