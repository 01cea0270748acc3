from __future__ import annotations

import json
import logging
import math
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

log = logging.getLogger(__name__)

APPS_DIR = Path(os.getenv("APPS_DIR", "apps"))
META_FILENAME = "meta.json"

DEFAULT_TREND = "Unknown trend"
DEFAULT_DESCRIPTION = "No description"


class AppDescriptor(BaseModel):
    id: str
    name: str
    date: str
    trend: str = DEFAULT_TREND
    description: str = DEFAULT_DESCRIPTION
    path: str
    stars: Union[int, float] = 0
    techStack: List[str] = Field(default_factory=list)


class SkippedApp(BaseModel):
    id: str
    reason: str


class ScanReport(BaseModel):
    apps: List[AppDescriptor] = Field(default_factory=list)
    skipped: List[SkippedApp] = Field(default_factory=list)


def _read_meta(folder: Path) -> Dict[str, Any]:
    """Load meta.json for one app folder; raises on anything unusable."""
    raw = (folder / META_FILENAME).read_text(encoding="utf-8")
    meta = json.loads(raw)
    if not isinstance(meta, dict):
        raise ValueError(f"{META_FILENAME} must hold a JSON object")
    return meta


_SCALARS = (str, int, float, bool)


def _text(value: Any, default: str) -> str:
    # Empty values count as absent; non-scalar values are ignored
    if not value or not isinstance(value, _SCALARS):
        return default
    return str(value)


def _number(value: Any) -> Union[int, float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    # json.loads accepts NaN/Infinity, which the JSON response cannot encode
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return value


def _tags(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if isinstance(v, _SCALARS)]


def build_descriptor(folder_name: str, meta: Dict[str, Any]) -> AppDescriptor:
    """Merge metadata over the defaults. Mistyped fields fall back to their default instead of dropping the app."""
    return AppDescriptor(
        id=folder_name,
        name=_text(meta.get("name"), folder_name),
        date=_text(meta.get("date"), folder_name[:10]),
        trend=_text(meta.get("trend"), DEFAULT_TREND),
        description=_text(meta.get("description"), DEFAULT_DESCRIPTION),
        path=f"/apps/{folder_name}",
        stars=_number(meta.get("stars")),
        techStack=_tags(meta.get("techStack")),
    )


def _list_folders(root: Path) -> List[Path]:
    try:
        entries = sorted(root.iterdir(), key=lambda p: p.name)
    except FileNotFoundError:
        log.debug("registry: apps dir %s does not exist", root)
        return []
    except OSError:
        log.warning("registry: failed to list %s", root, exc_info=True)
        return []
    folders: List[Path] = []
    for entry in entries:
        if entry.name.startswith("."):
            continue
        try:
            if entry.is_dir():
                folders.append(entry)
        except OSError:
            continue
    return folders


def scan_report(root: Optional[Path] = None) -> ScanReport:
    """
    Scan the registry root and return the catalog plus the folders that were left out.
    The catalog is sorted by date descending (plain string comparison).
    """
    root = Path(root) if root is not None else APPS_DIR
    report = ScanReport()
    for folder in _list_folders(root):
        try:
            meta = _read_meta(folder)
        except FileNotFoundError:
            report.skipped.append(SkippedApp(id=folder.name, reason=f"missing {META_FILENAME}"))
            continue
        except (OSError, ValueError) as exc:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
            log.warning("registry: skipping %s: %s", folder.name, exc)
            report.skipped.append(SkippedApp(id=folder.name, reason=str(exc)))
            continue
        report.apps.append(build_descriptor(folder.name, meta))
    # sort() is stable with reverse=True, so equal dates keep scan order
    report.apps.sort(key=lambda a: a.date, reverse=True)
    if report.skipped:
        log.debug("registry: %d apps listed, %d skipped", len(report.apps), len(report.skipped))
    return report


def scan_apps(root: Optional[Path] = None) -> List[AppDescriptor]:
    return scan_report(root).apps
