"""GitHub contents-API mirror for the mint tracking file."""

from __future__ import annotations

import base64
import logging

import httpx

from mint_gate.models.config import GitHubMirrorConfig
from mint_gate.models.errors import MirrorError

log = logging.getLogger(__name__)


class GitHubMirror:
    """Commits a file's full content to a GitHub repository branch.

    Each update fetches the current blob sha (absent on first write) and
    PUTs the new content as a single commit.
    """

    def __init__(
        self,
        cfg: GitHubMirrorConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._cfg = cfg
        self._client = client or httpx.AsyncClient(
            base_url=cfg.api_url,
            timeout=30.0,
            headers={
                "Authorization": f"Bearer {cfg.token}",
                "Accept": "application/vnd.github+json",
            },
        )

    def _contents_path(self, path: str) -> str:
        return f"/repos/{self._cfg.owner}/{self._cfg.repo}/contents/{path}"

    async def close(self) -> None:
        await self._client.aclose()

    async def _current_sha(self, path: str) -> str | None:
        resp = await self._client.get(
            self._contents_path(path), params={"ref": self._cfg.branch},
        )
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json().get("sha")

    async def update_file(self, path: str, content: str, message: str) -> None:
        try:
            sha = await self._current_sha(path)
            body = {
                "message": message,
                "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
                "branch": self._cfg.branch,
            }
            if sha:
                body["sha"] = sha
            resp = await self._client.put(self._contents_path(path), json=body)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise MirrorError(f"GitHub update of {path} failed: {exc}") from exc
        log.info("Mirrored %s to GitHub (%s)", path, message)
