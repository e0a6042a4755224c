import sys
import time

from .config import CPU_HZ, KEY_COUNT
from .cpu import Chip8
from .errors import Chip8Error

USAGE = "Usage: python -m chip8 <rom-file> [--text]"


def load_rom(path):
    print("Loading ROM:", path)
    with open(path, "rb") as f:
        return f.read()


def run_text(cpu):
    """Headless run: no keys pressed, frames printed to the terminal when they change."""
    keys = [False] * KEY_COUNT
    while True:
        out = cpu.cycle(keys)
        if out.display_changed:
            # clear terminal and home the cursor
            print("\x1b[2J\x1b[1;1H" + cpu.display.render_text(), flush=True)
        time.sleep(1.0 / CPU_HZ)


def run_window(cpu, rom_path):
    import pyglet
    from .window import Chip8Window

    Chip8Window(cpu, caption=f"CHIP-8 Emulator - {rom_path}")
    pyglet.app.run()


def main(argv=None):
    args = sys.argv[1:] if argv is None else argv
    text_mode = "--text" in args
    roms = [a for a in args if a != "--text"]
    if len(roms) != 1:
        print(USAGE)
        return 1

    cpu = Chip8()
    try:
        cpu.load_program(load_rom(roms[0]))
        if text_mode:
            run_text(cpu)
        else:
            run_window(cpu, roms[0])
    except OSError as e:
        print("Could not read ROM:", e)
        return 1
    except Chip8Error as e:
        print("Emulation error:", e)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
