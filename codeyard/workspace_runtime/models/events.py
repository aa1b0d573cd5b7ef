"""Change notification event model."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

from codeyard.workspace_runtime.models.enums import ChangeType


class FileChangeEvent(BaseModel):
    """Emitted after every mutation of a tenant tree.

    ``path`` is the absolute on-disk location; ``relative_path`` is what the
    caller asked for; ``base_path`` is the root of the tree it lives in
    (default working copy or branch worktree).
    """

    tenant: str
    path: Path
    relative_path: str
    change_type: ChangeType
    base_path: Path
    previous_content: bytes | None = None
    new_content: bytes | None = None
    timestamp: datetime = Field(default_factory=datetime.now)
