"""History store implementations for tenant trees."""

from codeyard.workspace_runtime.store.base import HistoryStore
from codeyard.workspace_runtime.store.git import GitHistoryStore

__all__ = ["GitHistoryStore", "HistoryStore"]
