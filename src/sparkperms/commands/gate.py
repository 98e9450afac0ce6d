from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from sparkperms.safety.allowlist import PermissionChecker


class CommandAccessDeniedError(PermissionError):
    pass


@dataclass(frozen=True)
class CommandSource:
    """Who is running a command, as resolved by the host."""

    name: str
    permission_level: int = 0
    feedback: Callable[[str], None] | None = None

    def send_feedback(self, text: str) -> None:
        if self.feedback is not None:
            self.feedback(text)


class AccessGate(Protocol):
    def __call__(self, source: CommandSource, capability: str, level: int) -> bool:  # pragma: no cover
        ...


def checker_gate(checker: PermissionChecker) -> AccessGate:
    """Gate that consults the allowlist first, then the source's level."""

    def _gate(source: CommandSource, capability: str, level: int) -> bool:
        return checker.require(capability, level)(source)

    return _gate


def level_gate(source: CommandSource, capability: str, level: int) -> bool:
    return source.permission_level >= level
