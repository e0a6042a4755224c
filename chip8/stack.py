from .config import STACK_SIZE
from .errors import StackOverflowError, StackUnderflowError


class CallStack:
    """Return addresses for 2nnn/00EE, bounded to STACK_SIZE entries."""

    def __init__(self, capacity=STACK_SIZE):
        self.capacity = capacity
        self._data = []

    def push(self, addr):
        if len(self._data) >= self.capacity:
            raise StackOverflowError(f"Stack overflow on CALL (depth {self.capacity})")
        self._data.append(addr)

    def pop(self):
        if not self._data:
            raise StackUnderflowError("Stack underflow on RET")
        return self._data.pop()

    def peek(self):
        return self._data[-1] if self._data else None

    def clear(self):
        self._data.clear()

    def __len__(self):
        return len(self._data)

    def __iter__(self):
        return iter(self._data)
