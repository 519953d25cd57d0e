from collections import deque
from typing import Deque
from gridtraffic.kernel.commands import Command

class CommandQueue:
    """Commands from outside the tick loop, applied at the next tick boundary."""

    def __init__(self):
        self.pending: Deque[Command] = deque()

    def __len__(self) -> int:
        return len(self.pending)

    def add(self, command: Command):
        self.pending.append(command)

    def drain(self):
        while self.pending:
            yield self.pending.popleft()
