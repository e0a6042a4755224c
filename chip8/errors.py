class Chip8Error(Exception):
    """Fatal emulation error. Carries the faulting opcode and PC once the
    cycle driver has attached them."""

    def __init__(self, message, opcode=None, pc=None):
        super().__init__(message)
        self.message = message
        self.opcode = opcode
        self.pc = pc

    def __str__(self):
        where = []
        if self.opcode is not None:
            where.append(f"opcode=0x{self.opcode:04X}")
        if self.pc is not None:
            where.append(f"pc=0x{self.pc:04X}")
        if where:
            return f"{self.message} ({' '.join(where)})"
        return self.message


class ProgramTooLargeError(Chip8Error):
    pass


class StackOverflowError(Chip8Error):
    pass


class StackUnderflowError(Chip8Error):
    pass


class MemoryAccessError(Chip8Error):
    pass
