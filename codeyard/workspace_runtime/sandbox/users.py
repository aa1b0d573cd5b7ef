"""Sandbox account management.

One OS account per tenant lives on the SSH sandbox host; its home directory
``{users_base}/{tenant}`` is the tenant's tree as mounted into the sandbox.
Files written through the HTTP channel are created by this process, so after
every write the account is re-asserted as owner of the written path
(``reassert_ownership``); otherwise the tenant could no longer edit that
file over SSH.

Each public method is one typed operation on the sandbox.  Tenant-controlled
values are validated and shell-quoted before they reach a command line;
secrets (passwords, key text) travel on the command's stdin so they never
appear in a process listing or in an error message.
"""

from __future__ import annotations

import re
import secrets
import shlex
from functools import partial

from anyio import to_thread
from loguru import logger

from codeyard.workspace_runtime.errors import (
    AccountNotFoundError,
    BoundaryUnavailableError,
    InvalidAccountNameError,
    InvalidPasswordError,
    InvalidPublicKeyError,
    RemoteCommandError,
)
from codeyard.workspace_runtime.models.sandbox import CommandResult, ConnectionInfo
from codeyard.workspace_runtime.paths import TENANT_PATTERN, validate_relative_path
from codeyard.workspace_runtime.sandbox.shell import CommandChannel

PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnpqrstuvwxyz23456789"
"""Alphanumerics without the look-alikes (I, O, l, o, 0, 1)."""

ACCOUNT_NAME_PATTERN = TENANT_PATTERN
"""The account name is the tenant id, so both follow one rule."""
PUBLIC_KEY_PATTERN = re.compile(r"^(?:ssh|ecdsa|sk)-[A-Za-z0-9@.-]+ [A-Za-z0-9+/]+={0,3}(?: [^\r\n]*)?$")


def generate_password(length: int = 16) -> str:
    """Cryptographically random password drawn from ``PASSWORD_ALPHABET``."""
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def validate_account_name(tenant: str) -> str:
    if not ACCOUNT_NAME_PATTERN.match(tenant or ""):
        msg = f"Invalid sandbox account name: {tenant!r}"
        raise InvalidAccountNameError(msg)
    return tenant


def validate_password(password: str) -> str:
    if not password or any(char in password for char in ":\r\n"):
        msg = "Password must be non-empty and contain no colon or line break"
        raise InvalidPasswordError(msg)
    return password


def validate_public_key(public_key: str) -> str:
    """Return the trimmed key, or raise ``InvalidPublicKeyError``."""
    key = public_key.strip()
    if not PUBLIC_KEY_PATTERN.match(key):
        msg = "Not a single-line OpenSSH public key"
        raise InvalidPublicKeyError(msg)
    return key


class SandboxUserManager:
    """Manages per-tenant accounts on the SSH sandbox host.

    Instantiated once during app lifespan when ``ssh_enabled`` is set.
    Stateless beyond its command channel and connection settings.
    """

    def __init__(
        self,
        shell: CommandChannel,
        *,
        public_host: str,
        public_port: int = 22,
        users_base: str = "/users/apps",
    ) -> None:
        self._shell = shell
        self._public_host = public_host
        self._public_port = public_port
        self._users_base = users_base.rstrip("/")

    # -- Helpers ---------------------------------------------------------------

    def home_dir(self, tenant: str) -> str:
        return f"{self._users_base}/{validate_account_name(tenant)}"

    def _connection(self, tenant: str, password: str | None = None) -> ConnectionInfo:
        return ConnectionInfo(username=tenant, host=self._public_host, port=self._public_port, password=password)

    async def _run(self, command: str, *, stdin: str | None = None) -> CommandResult:
        return await to_thread.run_sync(partial(self._shell.run, command, stdin=stdin))

    async def _require_reachable(self) -> None:
        if not await self.is_reachable():
            msg = "SSH sandbox is not accessible"
            raise BoundaryUnavailableError(msg)

    async def _require_account(self, tenant: str) -> None:
        if not await self.account_exists(tenant):
            msg = f"User '{tenant}' does not exist"
            raise AccountNotFoundError(msg)

    # -- Reachability ----------------------------------------------------------

    async def is_reachable(self) -> bool:
        """Run a no-op remotely.  Never raises; logs and returns ``False`` on failure."""
        try:
            await self._run("true")
        except (BoundaryUnavailableError, RemoteCommandError) as exc:
            logger.error("SSH sandbox is not accessible: {}", exc)
            return False
        return True

    async def test_connection(self) -> CommandResult:
        """Host name, remote user and uptime, for operator diagnostics."""
        return await self._run("hostname && whoami && uptime")

    async def account_exists(self, tenant: str) -> bool:
        """Whether the account exists.  Absence is a normal ``False``."""
        name = validate_account_name(tenant)
        try:
            await self._run(f"id -u {shlex.quote(name)}")
        except RemoteCommandError:
            return False
        return True

    # -- Accounts --------------------------------------------------------------

    async def provision_account(self, tenant: str, password: str | None = None) -> ConnectionInfo:
        """Create the tenant's account if missing.

        Idempotent: an existing account is returned as-is, without a password
        and without resetting it.  A fresh account's password (given or
        generated) is returned once.
        """
        name = validate_account_name(tenant)
        await self._require_reachable()

        if await self.account_exists(name):
            return self._connection(name)

        password = validate_password(password) if password else generate_password()
        home = shlex.quote(self.home_dir(name))
        user = shlex.quote(name)
        try:
            await self._run(f"useradd --home-dir {home} {user}")
        except RemoteCommandError:
            # Lost a creation race: the other caller's account is the result.
            if await self.account_exists(name):
                logger.warning("User {} was created concurrently", name)
                return self._connection(name)
            raise

        await self._run("chpasswd", stdin=f"{name}:{password}\n")
        await self._run(
            f"mkdir -p {home}/.ssh && chown -R {user} {home} && "
            f"chmod 700 {home}/.ssh && chown {user}:{user} {home}/.ssh"
        )
        logger.info("User {} created", name)
        return self._connection(name, password)

    async def rotate_password(self, tenant: str, new_password: str) -> ConnectionInfo:
        validate_account_name(tenant)
        validate_password(new_password)
        await self._require_reachable()
        await self._require_account(tenant)
        await self._run("chpasswd", stdin=f"{tenant}:{new_password}\n")
        logger.info("Password changed for {}", tenant)
        return self._connection(tenant, new_password)

    async def delete_account(self, tenant: str) -> None:
        """Remove the account.  The home directory is the tenant tree, so it is kept."""
        validate_account_name(tenant)
        await self._require_reachable()
        await self._require_account(tenant)
        await self._run(f"userdel {shlex.quote(tenant)}")
        logger.info("User {} deleted", tenant)

    async def describe_account(self, tenant: str) -> ConnectionInfo | None:
        """Connection info for an existing account (never a password), else ``None``."""
        if not await self.account_exists(tenant):
            return None
        return self._connection(tenant)

    # -- Keys ------------------------------------------------------------------

    async def authorize_key(self, tenant: str, public_key: str, *, auto_provision: bool = False) -> None:
        """Append a public key to the account's ``authorized_keys`` (mode 600)."""
        key = validate_public_key(public_key)
        name = validate_account_name(tenant)
        if auto_provision:
            await self.provision_account(name)
        else:
            await self._require_account(name)

        keys_file = shlex.quote(f"{self.home_dir(name)}/.ssh/authorized_keys")
        user = shlex.quote(name)
        await self._run(
            f"touch {keys_file} && cat >> {keys_file} && chown {user}:{user} {keys_file} && chmod 600 {keys_file}",
            stdin=f"{key}\n",
        )
        logger.info("SSH key added for {}", name)

    # -- Ownership -------------------------------------------------------------

    async def reassert_ownership(self, tenant: str, relative_path: str) -> None:
        """Make the tenant's account own one path under its home directory.

        ``chown -h`` changes a symlink itself, never the file it points to.

        ``relative_path`` is relative to the home (e.g. ``public/index.html``).
        Raises ``RemoteCommandError`` / ``BoundaryUnavailableError``; callers
        treat this as best-effort.
        """
        relative = validate_relative_path(relative_path)
        target = shlex.quote(f"{self.home_dir(tenant)}/{relative}")
        await self._run(f"chown -h {shlex.quote(tenant)} {target}")
        logger.debug("Ownership reasserted for {}:{}", tenant, relative)
