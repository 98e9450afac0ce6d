from __future__ import annotations

import logging
from concurrent.futures import Future
from enum import Enum
from typing import Any, Callable, Iterable, Protocol

logger = logging.getLogger(__name__)


class CheckResult(str, Enum):
    """Outcome of a permission query.

    There is no DENY: anything not granted is left to the host's default policy.
    """

    GRANTED = "granted"
    INDETERMINATE = "indeterminate"


class AllowedPermissionSource(Protocol):
    def snapshot(self) -> frozenset[str]:  # pragma: no cover
        ...


def check_permission(permission: str, allowed: Iterable[str]) -> CheckResult:
    """Grant ``permission`` if any allowed entry is a prefix of it.

    Exact equality counts as a match. Comparison is case-sensitive and
    character-wise, so "command.spark" does not match "command.sparkperms".
    """
    if any(permission.startswith(p) for p in allowed):
        return CheckResult.GRANTED
    return CheckResult.INDETERMINATE


class PermissionChecker:
    """Answers permission queries against the store's in-memory snapshot.

    Never touches the file; safe to call from any thread while commands mutate
    the store, since each call sees one immutable snapshot.
    """

    def __init__(self, store: AllowedPermissionSource, *, log_grants: bool = True):
        self._store = store
        self._log_grants = log_grants

    def check(self, permission: str) -> CheckResult:
        result = check_permission(permission, self._store.snapshot())
        if result is CheckResult.GRANTED and self._log_grants:
            logger.info("Allowing command with permission %s", permission)
        return result

    def check_offline(self, principal_id: Any, permission: str) -> "Future[CheckResult]":
        """Same answer as check(), wrapped for hosts that query offline principals.

        The principal is not consulted; the ruleset is global.
        """
        future: Future[CheckResult] = Future()
        future.set_result(self.check(permission))
        return future

    def require(self, capability: str, level: int) -> Callable[[Any], bool]:
        """Build a gate predicate for a command source.

        Passes when ``capability`` is granted here, otherwise when the source's
        ``permission_level`` reaches ``level``.
        """

        def _predicate(source: Any) -> bool:
            if self.check(capability) is CheckResult.GRANTED:
                return True
            return int(getattr(source, "permission_level", 0)) >= level

        return _predicate
