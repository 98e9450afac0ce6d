from .gate import CommandAccessDeniedError, CommandSource, checker_gate, level_gate
from .surface import CommandResult, CommandSpec, CommandSurface, CommandSyntaxError

__all__ = [
    "CommandAccessDeniedError",
    "CommandSource",
    "checker_gate",
    "level_gate",
    "CommandResult",
    "CommandSpec",
    "CommandSurface",
    "CommandSyntaxError",
]
