from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import NamedTuple, Optional

log = logging.getLogger(__name__)

INDEX_DOCUMENT = "index.html"
HTML_TYPE = "text/html; charset=utf-8"
DEFAULT_TYPE = "application/octet-stream"

MIME_TYPES = {
    "html": HTML_TYPE,
    "css": "text/css; charset=utf-8",
    "js": "application/javascript; charset=utf-8",
    "json": "application/json; charset=utf-8",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
}

FILE = "file"
REDIRECT = "redirect"
INDEX = "index"
NOT_FOUND = "not_found"


class Asset(NamedTuple):
    kind: str
    path: Optional[Path] = None
    media_type: Optional[str] = None


def media_type_for(path: Path) -> str:
    return MIME_TYPES.get(path.suffix.lstrip(".").lower(), DEFAULT_TYPE)


def _within(root: Path, target: Path) -> bool:
    return target == root or root in target.parents


def resolve_asset(root: Path, rel_path: str, trailing_slash: bool) -> Asset:
    """
    Decide what a request under /apps/ maps to:
    file -> directory needing a slash redirect -> directory index -> not found.
    Filesystem errors resolve to not found.
    """
    try:
        base = Path(root).resolve()
        target = (base / rel_path.lstrip("/")).resolve()
        if not _within(base, target):
            log.info("assets: rejecting path outside apps dir: %s", rel_path)
            return Asset(NOT_FOUND)
        if target.is_file():
            return Asset(FILE, target, media_type_for(target))
        index = target / INDEX_DOCUMENT
        if index.is_file():
            # Relative links in the index resolve against the directory only with a trailing slash
            if not trailing_slash:
                return Asset(REDIRECT)
            return Asset(INDEX, index, HTML_TYPE)
    except (OSError, RuntimeError, ValueError):
        # RuntimeError: symlink loops on older interpreters; ValueError: NUL bytes in path
        log.warning("assets: failed to resolve %s", rel_path, exc_info=True)
    return Asset(NOT_FOUND)


def stat_asset(asset: Asset) -> os.stat_result:
    """Stat a resolved asset before streaming it; raises OSError if it vanished or cannot be read."""
    if asset.path is None:
        raise FileNotFoundError(asset.kind)
    st = asset.path.stat()
    if not os.access(asset.path, os.R_OK):
        raise PermissionError(f"not readable: {asset.path}")
    return st
