from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SparkPermsSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SPARKPERMS_", extra="ignore")

    # Directory supplied by the host for config files.
    config_dir: Path = Field(default=Path("config"))
    perms_file_name: str = Field(default="sparkperms.txt")

    # Gate for the perms command tree. Subcommands append ".<name>".
    command_permission: str = Field(default="command.sparkperms")
    command_permission_level: int = Field(default=2)

    # Log every granted permission check at INFO.
    log_grants: bool = Field(default=True)
    log_level: str = Field(default="INFO")

    # MCP transport options. Many MCP hosts use stdio; some support HTTP/SSE.
    mcp_transport: str = Field(default="stdio")  # "stdio" | "sse"
    mcp_host: str = Field(default="127.0.0.1")
    mcp_port: int = Field(default=8766)

    # Identity used for commands arriving over MCP.
    mcp_operator_name: str = Field(default="mcp")
    mcp_operator_level: int = Field(default=4)

    @property
    def perms_path(self) -> Path:
        return self.config_dir / self.perms_file_name


def get_settings() -> SparkPermsSettings:
    return SparkPermsSettings()
