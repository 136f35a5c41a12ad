"""RemoteMirror protocol - copies a file to a version-controlled store."""

from __future__ import annotations

from typing import Protocol


class RemoteMirror(Protocol):
    """Writes a file's full content to a remote repository as one commit."""

    async def update_file(self, path: str, content: str, message: str) -> None:
        """Raises MirrorError on failure."""
        ...

    async def close(self) -> None:
        ...
