"""SSH sandbox access: remote command channel and per-tenant accounts."""

from codeyard.workspace_runtime.sandbox.shell import CommandChannel, RemoteShell
from codeyard.workspace_runtime.sandbox.users import SandboxUserManager, generate_password

__all__ = ["CommandChannel", "RemoteShell", "SandboxUserManager", "generate_password"]
