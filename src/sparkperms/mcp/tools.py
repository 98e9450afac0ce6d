from __future__ import annotations

import asyncio
import logging
from typing import Any

from sparkperms.commands.gate import CommandSource, checker_gate
from sparkperms.commands.surface import CommandResult, CommandSurface
from sparkperms.config import SparkPermsSettings, get_settings
from sparkperms.safety.allowlist import PermissionChecker
from sparkperms.storage.perm_store import PermissionStore
from sparkperms.storage.persist_worker import PersistWorker

logger = logging.getLogger(__name__)


def _result_to_dict(result: CommandResult) -> dict:
    return {"ok": result.ok, "output": result.output, "error": result.error}


def _apply_job_outcome(payload: dict, outcome: Any, path: Any) -> dict:
    # Saves return a bool, loads return the loaded count.
    if isinstance(outcome, bool):
        if not outcome:
            payload["ok"] = False
            payload["error"] = f"Failed to write {path}"
    elif isinstance(outcome, int):
        payload["output"] = f"Loaded {outcome} perms"
    return payload


class SparkPermsCore:
    """Owns one store and everything that reads or writes it.

    Lives as long as the host application; hand ``checker`` to the host's
    authorization pipeline and ``surface`` to its command registrar.
    """

    def __init__(self, settings: SparkPermsSettings | None = None):
        self.settings = settings or get_settings()

        self.store = PermissionStore(self.settings.perms_path)
        self.worker = PersistWorker()
        self.checker = PermissionChecker(self.store, log_grants=self.settings.log_grants)
        self.surface = CommandSurface(
            self.store,
            self.worker,
            checker_gate(self.checker),
            base_permission=self.settings.command_permission,
            level=self.settings.command_permission_level,
        )
        self.operator = CommandSource(
            name=self.settings.mcp_operator_name,
            permission_level=self.settings.mcp_operator_level,
        )

        self._started = False

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        # Initial load runs synchronously so the first check sees the file.
        self.store.load()
        self.worker.start()
        logger.info("SparkPerms started with %d perms from %s", len(self.store), self.store.path)

    def stop(self) -> None:
        if not self._started:
            return
        self.worker.stop()
        self._started = False

    def check(self, permission: str) -> dict:
        return {"permission": permission, "result": self.checker.check(permission).value}

    def check_offline(self, principal_id: Any, permission: str) -> dict:
        result = self.checker.check_offline(principal_id, permission).result()
        return {"principal": str(principal_id), "permission": permission, "result": result.value}

    def run_command(self, line: str, *, source: CommandSource | None = None, wait: bool = False) -> dict:
        """Dispatch a ``perms`` command line.

        With ``wait`` the background load/save is awaited; a reload then
        reports its count in ``output`` and a failed save turns ``ok`` off.
        """
        source = source or self.operator
        result = self.surface.dispatch(source, line)
        payload = _result_to_dict(result)
        if wait and result.job is not None:
            _apply_job_outcome(payload, result.job.result(), self.store.path)
        return payload

    async def run_command_async(self, line: str, *, source: CommandSource | None = None) -> dict:
        """Like run_command(wait=True), but awaits the background job without blocking the loop."""
        result = self.surface.dispatch(source or self.operator, line)
        payload = _result_to_dict(result)
        if result.job is not None:
            outcome = await asyncio.wrap_future(result.job)
            _apply_job_outcome(payload, outcome, self.store.path)
        return payload

    def suggest(self, partial: str = "", *, source: CommandSource | None = None) -> list[str]:
        needle = (partial or "").lower()
        candidates = self.surface.suggest_revoke(source or self.operator)
        return [p for p in candidates if p.lower().startswith(needle)]
