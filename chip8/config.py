# CHIP-8 configuration
# Display - 64x32 monochrome framebuffer, scaled up for the window.
# Memory - 4096 bytes: fonts live at 0x000, programs are loaded at 0x200.
# Clocks - the window calls cycle() CPU_HZ times a second and redraws at FRAME_HZ.
#----------------------------------------------------------------------------------------------

# display
WIDTH, HEIGHT = 64, 32
SCALE = 10
WINDOW_WIDTH, WINDOW_HEIGHT = WIDTH * SCALE, HEIGHT * SCALE

# memory map
MEMORY_SIZE = 4096
PROGRAM_START = 0x200
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START
FONT_START = 0x000
FONT_GLYPH_SIZE = 5

# cpu
REGISTER_COUNT = 16
STACK_SIZE = 16
KEY_COUNT = 16
OPCODE_SIZE = 2
MAX_SPRITE_ROWS = 15

# Fx1E sets VF when I goes past this address (only with index_overflow_flag on)
INDEX_OVERFLOW_LIMIT = 0x0F00

# clocks
CPU_HZ = 500
FRAME_HZ = 60

# set fonts (binary pixel patterns)
FONTSET = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
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
    0xF0, 0x80, 0xF0, 0x80, 0x80   # F
] #notice 80 bytes

#make it true if you want the logs (F1 toggles it in the window)
logs_on = False


def log(*args):
    if logs_on:
        print(*args)


def set_logging(enabled):
    global logs_on
    logs_on = bool(enabled)
