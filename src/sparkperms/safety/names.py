from __future__ import annotations

import re


class InvalidPermissionError(ValueError):
    def __init__(self, value: str):
        super().__init__(f"'{value}' is not a valid permission name")
        self.value = value


# Word segments joined by single dots: "command.sparkperms.allow".
_PERMISSION_NAME = re.compile(r"\w+(?:\.\w+)*", re.ASCII)


def is_valid_permission(value: str) -> bool:
    if not isinstance(value, str):
        return False
    return _PERMISSION_NAME.fullmatch(value) is not None


def validate_permission(value: str) -> str:
    """Return ``value`` unchanged if it is a valid permission name.

    Raises InvalidPermissionError otherwise. No normalization is applied;
    matching is case-sensitive, so "Foo.bar" and "foo.bar" are distinct.
    """
    if not is_valid_permission(value):
        raise InvalidPermissionError(value)
    return value
