"""The ``perms`` command tree: reload, list, allow, revoke and clear.

Mutations apply to the store on the calling thread; file I/O is handed to
the persist worker and the command returns without waiting for it.
"""
from __future__ import annotations

import logging
import shlex
from functools import partial
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable

from sparkperms.commands.gate import AccessGate, CommandAccessDeniedError, CommandSource
from sparkperms.safety.names import InvalidPermissionError, validate_permission
from sparkperms.storage.perm_store import PermissionStore
from sparkperms.storage.persist_worker import PersistWorker

logger = logging.getLogger(__name__)

ROOT_LITERAL = "perms"


class CommandSyntaxError(ValueError):
    pass


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    output: str = ""
    error: str | None = None
    job: "Future[Any] | None" = None


@dataclass(frozen=True)
class CommandSpec:
    """A subcommand as handed to the host's command registrar."""

    name: str
    capability: str
    level: int
    usage: str
    handler: Callable[[CommandSource, list[str]], CommandResult]
    suggests: Callable[[CommandSource], list[str]] | None = None


def _parse_bool(value: str) -> bool:
    if value == "true":
        return True
    if value == "false":
        return False
    raise CommandSyntaxError(f"Expected 'true' or 'false' but got {value!r}")


def _expect_args(args: list[str], spec: CommandSpec, *, minimum: int, maximum: int) -> None:
    if len(args) < minimum:
        raise CommandSyntaxError(f"Missing argument. Usage: {spec.usage}")
    if len(args) > maximum:
        raise CommandSyntaxError(f"Too many arguments. Usage: {spec.usage}")


class CommandSurface:
    def __init__(
        self,
        store: PermissionStore,
        worker: PersistWorker,
        gate: AccessGate,
        *,
        base_permission: str = "command.sparkperms",
        level: int = 2,
    ):
        self._store = store
        self._worker = worker
        self._gate = gate
        self._base_permission = base_permission
        self._level = level
        self._specs: dict[str, CommandSpec] = {
            spec.name: spec
            for spec in (
                CommandSpec("reload", base_permission, level, f"{ROOT_LITERAL} reload", self._run_reload),
                CommandSpec("list", f"{base_permission}.list", level, f"{ROOT_LITERAL} list", self._run_list),
                CommandSpec(
                    "allow",
                    f"{base_permission}.allow",
                    level,
                    f"{ROOT_LITERAL} allow <permission>",
                    self._run_allow,
                ),
                CommandSpec(
                    "revoke",
                    f"{base_permission}.revoke",
                    level,
                    f"{ROOT_LITERAL} revoke <permission> [<recursive>]",
                    self._run_revoke,
                    suggests=self.suggest_revoke,
                ),
                CommandSpec("clear", f"{base_permission}.clear", level, f"{ROOT_LITERAL} clear", self._run_clear),
            )
        }

    # -- registration -------------------------------------------------------

    def command_specs(self) -> list[CommandSpec]:
        return list(self._specs.values())

    def register(self, register_command: Callable[[CommandSpec], Any]) -> None:
        for spec in self._specs.values():
            register_command(spec)

    def can_run(self, source: CommandSource, name: str) -> bool:
        spec = self._specs.get(name)
        if spec is None:
            return False
        # The root node is gated on its own; every subcommand also needs its capability.
        if not self._gate(source, self._base_permission, self._level):
            return False
        if spec.capability != self._base_permission:
            return self._gate(source, spec.capability, spec.level)
        return True

    def _require(self, source: CommandSource, name: str) -> None:
        if not self.can_run(source, name):
            raise CommandAccessDeniedError(f"{source.name} is not permitted to run '{ROOT_LITERAL} {name}'")

    def _persist(self) -> "Future[Any]":
        return self._worker.submit(self._store.save)

    # -- typed operations ---------------------------------------------------

    def reload(self, source: CommandSource) -> CommandResult:
        self._require(source, "reload")
        # Changes made after this command must survive the queued load.
        job = self._worker.submit(partial(self._store.load, self._store.begin_load()))

        def _report(done: "Future[Any]") -> None:
            if done.exception() is None:
                source.send_feedback(f"Loaded {done.result()} perms")

        job.add_done_callback(_report)
        return CommandResult(ok=True, job=job)

    def list_perms(self, source: CommandSource) -> CommandResult:
        self._require(source, "list")
        output = "\n".join(self._store.snapshot_sorted())
        source.send_feedback(output)
        return CommandResult(ok=True, output=output)

    def allow(self, source: CommandSource, permission: str) -> CommandResult:
        self._require(source, "allow")
        validate_permission(permission)
        if not self._store.add(permission):
            return CommandResult(ok=True)
        logger.info("%s allowed permission %s", source.name, permission)
        return CommandResult(ok=True, job=self._persist())

    def revoke(self, source: CommandSource, permission: str, recursive: bool = False) -> CommandResult:
        self._require(source, "revoke")
        if recursive:
            changed = self._store.remove_by_prefix(permission)
        else:
            changed = self._store.remove(permission)
        if not changed:
            return CommandResult(ok=True)
        logger.info("%s revoked permission %s (recursive=%s)", source.name, permission, recursive)
        return CommandResult(ok=True, job=self._persist())

    def clear(self, source: CommandSource) -> CommandResult:
        self._require(source, "clear")
        if not self._store.clear():
            return CommandResult(ok=True)
        logger.info("%s cleared all permissions", source.name)
        return CommandResult(ok=True, job=self._persist())

    def suggest_revoke(self, source: CommandSource) -> list[str]:
        """Candidates for the revoke argument; filtering is left to the host."""
        if not self.can_run(source, "revoke"):
            return []
        return self._store.snapshot_sorted()

    # -- text dispatch ------------------------------------------------------

    def dispatch(self, source: CommandSource, line: str) -> CommandResult:
        """Run a command line such as ``allow foo.bar`` or ``perms revoke foo true``.

        Command errors come back as a failed CommandResult instead of raising.
        """
        try:
            tokens = shlex.split(line or "")
        except ValueError as exc:
            return CommandResult(ok=False, error=f"Malformed command: {exc}")

        if tokens and tokens[0] == ROOT_LITERAL:
            tokens = tokens[1:]

        try:
            if not tokens:
                raise CommandSyntaxError(f"Missing subcommand. Expected one of: {', '.join(self._specs)}")
            spec = self._specs.get(tokens[0])
            if spec is None:
                raise CommandSyntaxError(f"Unknown subcommand {tokens[0]!r}")
            return spec.handler(source, tokens[1:])
        except (CommandSyntaxError, InvalidPermissionError, CommandAccessDeniedError) as exc:
            logger.info("Command %r from %s failed: %s", line, source.name, exc)
            return CommandResult(ok=False, error=str(exc))

    def _run_reload(self, source: CommandSource, args: list[str]) -> CommandResult:
        _expect_args(args, self._specs["reload"], minimum=0, maximum=0)
        return self.reload(source)

    def _run_list(self, source: CommandSource, args: list[str]) -> CommandResult:
        _expect_args(args, self._specs["list"], minimum=0, maximum=0)
        return self.list_perms(source)

    def _run_allow(self, source: CommandSource, args: list[str]) -> CommandResult:
        _expect_args(args, self._specs["allow"], minimum=1, maximum=1)
        return self.allow(source, args[0])

    def _run_revoke(self, source: CommandSource, args: list[str]) -> CommandResult:
        _expect_args(args, self._specs["revoke"], minimum=1, maximum=2)
        recursive = _parse_bool(args[1]) if len(args) == 2 else False
        return self.revoke(source, args[0], recursive=recursive)

    def _run_clear(self, source: CommandSource, args: list[str]) -> CommandResult:
        _expect_args(args, self._specs["clear"], minimum=0, maximum=0)
        return self.clear(source)
