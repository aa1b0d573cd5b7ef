"""Remote command channel to the SSH sandbox host.

Every remote operation goes through ``RemoteShell.run``: open a connection
as the administrator, run exactly one command, capture its output, close.
There is no long-lived connection; the sandbox is reached rarely (account
management, one ``chown`` per write) and a fresh connection per call keeps
failure handling trivial.

The channel is synchronous (paramiko); async callers run it through
``anyio.to_thread.run_sync``.
"""

from __future__ import annotations

import socket
from typing import Protocol

import paramiko
from loguru import logger

from codeyard.workspace_runtime.errors import BoundaryUnavailableError, RemoteCommandError
from codeyard.workspace_runtime.models.sandbox import CommandResult


class CommandChannel(Protocol):
    """Anything that can run one shell command on the sandbox host."""

    def run(self, command: str, *, stdin: str | None = None) -> CommandResult:
        """Run ``command``.  ``stdin`` is written to the command's input, then closed."""
        ...


class RemoteShell:
    """paramiko implementation of ``CommandChannel``.

    Authenticates with the administrator's private key file only (no agent,
    no key discovery).  The sandbox host is an internal container whose host
    key changes on rebuild, so unknown host keys are accepted.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int = 22,
        username: str = "root",
        key_file: str,
        connect_timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self._key_file = key_file
        self._connect_timeout = connect_timeout

    def _connect(self) -> paramiko.SSHClient:
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())  # noqa: S507
        try:
            client.connect(
                self.host,
                port=self.port,
                username=self.username,
                key_filename=self._key_file,
                timeout=self._connect_timeout,
                banner_timeout=self._connect_timeout,
                auth_timeout=self._connect_timeout,
                allow_agent=False,
                look_for_keys=False,
            )
        except (paramiko.SSHException, OSError, socket.timeout) as exc:
            client.close()
            msg = f"SSH connection to {self.host}:{self.port} failed: {exc}"
            raise BoundaryUnavailableError(msg) from exc
        return client

    def run(self, command: str, *, stdin: str | None = None) -> CommandResult:
        client = self._connect()
        try:
            # stdin carries passwords and key text: only its size is logged.
            stdin_note = f" (stdin: {len(stdin)} chars)" if stdin is not None else ""
            logger.debug("SSH {}@{}: {}{}", self.username, self.host, command, stdin_note)
            channel_stdin, channel_stdout, channel_stderr = client.exec_command(command)
            if stdin is not None:
                channel_stdin.write(stdin)
                channel_stdin.flush()
            channel_stdin.channel.shutdown_write()

            stdout = channel_stdout.read().decode("utf-8", errors="replace")
            stderr = channel_stderr.read().decode("utf-8", errors="replace")
            exit_status = channel_stdout.channel.recv_exit_status()
        except paramiko.SSHException as exc:
            msg = f"SSH session to {self.host}:{self.port} failed: {exc}"
            raise BoundaryUnavailableError(msg) from exc
        finally:
            client.close()

        if exit_status != 0:
            raise RemoteCommandError(exit_status, (stderr or stdout).strip())
        return CommandResult(stdout=stdout.strip(), stderr=stderr.strip())
