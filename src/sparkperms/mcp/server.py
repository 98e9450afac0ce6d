from __future__ import annotations

import logging

from sparkperms.config import get_settings
from sparkperms.mcp.tools import SparkPermsCore

logger = logging.getLogger(__name__)


def _build_server():
    # Using the standard MCP Python SDK (mcp) if installed.
    from mcp.server.fastmcp import FastMCP

    settings = get_settings()
    core = SparkPermsCore(settings)
    core.start()

    mcp = FastMCP("sparkperms", host=settings.mcp_host, port=settings.mcp_port)

    # One tool per registered subcommand, each taking a free-form args string.
    def _register(spec) -> None:
        @mcp.tool(name=f"perms.{spec.name}", description=f"Usage: {spec.usage}")
        async def _tool(args: str = "") -> dict:
            line = spec.name if not args.strip() else f"{spec.name} {args.strip()}"
            return await core.run_command_async(line)

    core.surface.register(_register)

    @mcp.tool(name="perms.check")
    def check(permission: str) -> dict:
        return core.check(permission)

    @mcp.tool(name="perms.suggest")
    def suggest(partial: str = "") -> list[str]:
        return core.suggest(partial)

    return mcp, core, settings


def main() -> None:
    logging.basicConfig(level=getattr(logging, get_settings().log_level.upper(), logging.INFO))

    mcp, core, settings = _build_server()

    transport = (settings.mcp_transport or "stdio").lower()
    logger.info("SparkPerms MCP starting transport=%s perms_path=%s", transport, settings.perms_path)
    try:
        if transport == "sse":
            logger.info("SparkPerms MCP SSE listening on http://%s:%s", settings.mcp_host, settings.mcp_port)
            mcp.run(transport="sse")
        else:
            logger.info("SparkPerms MCP stdio ready (waiting for MCP client)")
            mcp.run()
    finally:
        core.stop()


if __name__ == "__main__":
    main()
