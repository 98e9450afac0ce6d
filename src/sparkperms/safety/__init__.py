from .allowlist import CheckResult, PermissionChecker, check_permission
from .names import InvalidPermissionError, is_valid_permission, validate_permission

__all__ = [
    "CheckResult",
    "PermissionChecker",
    "check_permission",
    "InvalidPermissionError",
    "is_valid_permission",
    "validate_permission",
]
