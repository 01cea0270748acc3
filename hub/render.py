from __future__ import annotations
from datetime import datetime
from pathlib import Path
from typing import List
from jinja2 import Environment, FileSystemLoader, select_autoescape

from hub.registry import AppDescriptor

TEMPLATES_DIR = Path(__file__).parent / "templates"

# Estimated hours saved per shipped app, shown in the stats strip
HOURS_PER_APP = 4.2

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
    enable_async=False,
)


def format_date(value: str) -> str:
    """'2026-02-09' -> 'Feb 9, 2026'. Anything unparseable is shown as-is."""
    try:
        d = datetime.strptime((value or "")[:10], "%Y-%m-%d")
    except ValueError:
        return value
    return f"{d.strftime('%b')} {d.day}, {d.year}"


_env.filters["format_date"] = format_date


def render_hub_html(apps: List[AppDescriptor]) -> str:
    """Render the catalog page. An empty catalog gets the coming-soon view instead of a grid."""
    base = _env.get_template("hub.html")
    return base.render(
        apps=apps,
        hours_saved=int(len(apps) * HOURS_PER_APP),
    )
