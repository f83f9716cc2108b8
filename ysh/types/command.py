"""Result of running an external command."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CommandHandle:
    """The value of a successfully dispatched external command.

    In string contexts (concatenation with a string, comparison with a string,
    interpolation, command arguments) a handle stands for its output text.
    """

    name: str
    args: tuple[str, ...]
    status: int
    output: str = ""

    @property
    def text(self) -> str:
        # trailing newline dropped, as `$(...)` does in POSIX shells
        return self.output[:-1] if self.output.endswith("\n") else self.output

    def __str__(self) -> str:
        return self.text
