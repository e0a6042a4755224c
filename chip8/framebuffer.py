import numpy as np

from .config import WIDTH, HEIGHT, MAX_SPRITE_ROWS

# bit offsets 0..7 across a sprite row, most significant bit first
_SPRITE_COLUMNS = np.arange(8)


class FrameBuffer:
    """64x32 monochrome display.

    Pixels are a (height, width) uint8 numpy array holding 0 or 1. Sprites
    are XORed onto it and wrap around both edges. ``dirty`` is set by every
    clear and draw; the CPU resets it at the start of each cycle.
    """

    def __init__(self, width=WIDTH, height=HEIGHT):
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width), dtype=np.uint8)
        self.dirty = False

    def clear(self):
        self.pixels[:] = 0
        self.dirty = True

    def toggle_pixel(self, x, y):
        """XOR a single pixel on. Returns True if it was already set."""
        x %= self.width
        y %= self.height
        was_set = bool(self.pixels[y, x])
        self.pixels[y, x] ^= 1
        self.dirty = True
        return was_set

    def draw(self, origin_x, origin_y, sprite_rows):
        """XOR sprite_rows (one byte per row) at (origin_x, origin_y).

        Returns True if any set sprite bit landed on an already set pixel.
        """
        if len(sprite_rows) > MAX_SPRITE_ROWS:
            raise ValueError(f"Sprites are at most {MAX_SPRITE_ROWS} rows, got {len(sprite_rows)}")

        cols = (origin_x + _SPRITE_COLUMNS) % self.width
        collision = False
        for r, byte in enumerate(sprite_rows):
            if byte == 0:
                continue
            bits = np.unpackbits(np.array([byte], dtype=np.uint8))
            y = (origin_y + r) % self.height
            if np.any(self.pixels[y, cols] & bits):
                collision = True
            self.pixels[y, cols] ^= bits

        self.dirty = True
        return collision

    def snapshot(self):
        """Read-only copy of the pixel grid."""
        frame = self.pixels.copy()
        frame.setflags(write=False)
        return frame

    def is_blank(self):
        return not self.pixels.any()

    def render_text(self, on="█", off="░"):
        return "\n".join(
            "".join(on if p else off for p in row) for row in self.pixels
        )
