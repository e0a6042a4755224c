# pyglet frontend: the window owns the keypad state and the clock, and hands
# a fresh keypad snapshot to Chip8.cycle() on every CPU tick.

import numpy as np
import pyglet
from pyglet.window import key

from . import config
from .config import CPU_HZ, FRAME_HZ, HEIGHT, KEY_COUNT, SCALE, WIDTH, WINDOW_HEIGHT, WINDOW_WIDTH
from .errors import Chip8Error

#map binding keys
KEYMAP = {
    key._1: 0x1, key._2: 0x2, key._3: 0x3, key._4: 0xC,
    key.Q: 0x4, key.W: 0x5, key.E: 0x6, key.R: 0xD,
    key.A: 0x7, key.S: 0x8, key.D: 0x9, key.F: 0xE,
    key.Z: 0xA, key.X: 0x0, key.C: 0xB, key.V: 0xF,
}

WHITE = (255, 255, 255, 255)


def _hud_label(text, y, color=WHITE):
    return pyglet.text.Label(
        text,
        font_size=12,
        x=5,
        y=y,
        anchor_x='left',
        anchor_y='center',
        color=color
    )


class Chip8Window(pyglet.window.Window):

    def __init__(self, cpu, caption="CHIP-8 Emulator"):
        super().__init__(
            width=WINDOW_WIDTH,
            height=WINDOW_HEIGHT,
            caption=caption,
            vsync=False
        )
        self.cpu = cpu
        self.keys = [False] * KEY_COUNT
        self.frame = cpu.display.snapshot()
        self.beeping = False
        self.should_draw = True

        # 64x32 RGBA buffer, upscaled with numpy.repeat before each blit
        self._small_framebuf = np.zeros((HEIGHT, WIDTH, 4), dtype=np.uint8)
        self._small_framebuf[..., 3] = 255
        self.image = pyglet.image.ImageData(
            WINDOW_WIDTH,
            WINDOW_HEIGHT,
            'RGBA',
            bytes(WINDOW_WIDTH * WINDOW_HEIGHT * 4)
        )

        # Performance tracking counters
        self._fps_counter = 0
        self._cps_counter = 0
        self.fps_label = _hud_label("FPS: 0", WINDOW_HEIGHT - 15)
        self.cps_label = _hud_label("Cycles/s: 0", WINDOW_HEIGHT - 30)
        self.beep_label = _hud_label("BEEP", WINDOW_HEIGHT - 45, color=(255, 80, 80, 255))

        # Schedule the loops
        pyglet.clock.schedule_interval(self._cpu_tick, 1.0 / CPU_HZ)
        pyglet.clock.schedule_interval(self.draw_frame, 1.0 / FRAME_HZ)
        pyglet.clock.schedule_interval(self._update_bench, 1.0)

    # ---- CPU cycle ----
    def _cpu_tick(self, dt):
        try:
            out = self.cpu.cycle(self.keys)
        except Chip8Error as e:
            print("Emulation error:", e)
            self.close()
            return

        self._cps_counter += 1
        self.beeping = out.beep
        if out.display_changed:
            self.frame = out.display
            self.should_draw = True

    # FPS / CPS
    def _update_bench(self, dt):
        self.fps_label.text = f"FPS: {self._fps_counter / dt:.1f}"
        self.cps_label.text = f"Cycles/s: {self._cps_counter / dt:.0f}"
        self._fps_counter = 0
        self._cps_counter = 0

    # draw loop
    def draw_frame(self, dt):
        self.dispatch_event('on_draw')

    def on_draw(self):
        self.clear()

        if self.should_draw:
            # row 0 is the top of the CHIP-8 screen, pyglet's origin is bottom-left
            self._small_framebuf[..., :3] = (np.flipud(self.frame) * 255)[..., None]
            scaled = np.repeat(np.repeat(self._small_framebuf, SCALE, axis=0), SCALE, axis=1)
            self.image.set_data('RGBA', WINDOW_WIDTH * 4, scaled.tobytes())
            self.should_draw = False
        self.image.blit(0, 0)

        self.fps_label.draw()
        self.cps_label.draw()
        if self.beeping:
            self.beep_label.draw()
        self._fps_counter += 1

    # keyboard
    def on_key_press(self, symbol, modifiers):
        if symbol == key.ESCAPE:
            self.close()
        elif symbol == key.F1:
            config.set_logging(not config.logs_on)
            print("logs_on:", config.logs_on)
        elif symbol in KEYMAP:
            self.keys[KEYMAP[symbol]] = True

    def on_key_release(self, symbol, modifiers):
        if symbol in KEYMAP:
            self.keys[KEYMAP[symbol]] = False

    def close(self):
        pyglet.clock.unschedule(self._cpu_tick)
        pyglet.clock.unschedule(self.draw_frame)
        pyglet.clock.unschedule(self._update_bench)
        super().close()
