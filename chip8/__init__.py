from .cpu import Chip8, OutputState
from .errors import (
    Chip8Error, MemoryAccessError, ProgramTooLargeError, StackOverflowError, StackUnderflowError,
)
from .framebuffer import FrameBuffer

__all__ = [
    "Chip8", "OutputState", "FrameBuffer",
    "Chip8Error", "MemoryAccessError", "ProgramTooLargeError",
    "StackOverflowError", "StackUnderflowError",
]
