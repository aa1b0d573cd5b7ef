"""Sandbox account data models."""

from __future__ import annotations

from pydantic import BaseModel


class ConnectionInfo(BaseModel):
    """How a tenant reaches its sandbox account over SSH.

    ``password`` is only populated when it was just set (fresh account or
    rotation); existing passwords are never readable.
    """

    username: str
    host: str
    port: int
    password: str | None = None


class CommandResult(BaseModel):
    """Captured output of one successful remote command."""

    stdout: str = ""
    stderr: str = ""
