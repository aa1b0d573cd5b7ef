"""Service configuration loaded from CODEYARD_* environment variables."""

from __future__ import annotations

import secrets
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class CodeyardSettings(BaseSettings):
    """Codeyard workspace runtime settings.

    All fields are read from environment variables with the ``CODEYARD_``
    prefix.  For example, ``CODEYARD_LOG_LEVEL=DEBUG`` maps to ``log_level``.
    """

    model_config = SettingsConfigDict(
        env_prefix="CODEYARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"
    log_file: str | None = None
    """Optional file sink in addition to stderr, rotated by size."""

    log_rotation: str = "20 MB"
    log_retention: int = 5

    # -- Data storage ----------------------------------------------------------
    data_root: str = "./data"
    """Root directory holding every tenant tree (``{data_root}/apps/{tenant}``)."""

    data_prefix: str | None = None
    """Optional namespace prefix inserted into all data paths.

    When set, all paths become ``{data_root}/{data_prefix}/...``.
    """

    # -- History ---------------------------------------------------------------
    git_author_name: str = "Codeyard"
    git_author_email: str = "codeyard@localhost"
    """Identity recorded on every auto-commit."""

    # -- Auth ------------------------------------------------------------------
    auth_token: str | None = None
    """Bearer token for API access.  Auto-generated at startup if empty."""

    # -- SSH sandbox -----------------------------------------------------------
    ssh_enabled: bool = False
    """Provision sandbox accounts and re-own files after every write."""

    ssh_container_host: str = "ssh-sandbox"
    ssh_container_port: int = 22
    ssh_admin_user: str = "root"
    ssh_admin_key_file: str = "/root/.ssh/id_rsa"
    ssh_connect_timeout: float = 10.0

    ssh_public_host: str = "localhost"
    """Host name handed to tenants in their connection info."""

    ssh_public_port: int = 22
    ssh_users_base: str = "/users/apps"
    """Parent of every tenant home directory inside the sandbox."""

    # -- Server ----------------------------------------------------------------
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000

    # -- Helpers ---------------------------------------------------------------

    def resolve_auth_token(self) -> str:
        """Return the configured token or generate a random one."""
        if self.auth_token:
            return self.auth_token
        return secrets.token_urlsafe(32)


@lru_cache(maxsize=1)
def get_settings() -> CodeyardSettings:
    """Settings read once from the environment and ``.env``.

    Tests that change ``CODEYARD_*`` variables call ``get_settings.cache_clear()``.
    """
    return CodeyardSettings()
