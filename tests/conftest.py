import random

import pytest

from chip8.cpu import Chip8

NO_KEYS = [False] * 16
SEED = 1234


def as_program(*opcodes):
    return b"".join(op.to_bytes(2, "big") for op in opcodes)


@pytest.fixture
def cpu():
    return Chip8(rng=random.Random(SEED))


@pytest.fixture
def run(cpu):
    """Load opcodes at 0x200 and cycle once per opcode (or `cycles` times)."""
    def _run(*opcodes, cycles=None, keys=NO_KEYS):
        cpu.load_program(as_program(*opcodes))
        out = None
        for _ in range(len(opcodes) if cycles is None else cycles):
            out = cpu.cycle(keys)
        return out
    return _run
