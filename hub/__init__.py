import os
from pathlib import Path
from typing import Dict, Optional, Tuple

ENV_FILE = Path(".env")


def parse_env_line(line: str) -> Optional[Tuple[str, str]]:
    """Parse `KEY=value` (optionally `export KEY="value"`); None for blanks, comments and junk."""
    s = line.strip()
    if not s or s.startswith("#") or "=" not in s:
        return None
    key, val = s.split("=", 1)
    key = key.strip()
    if key.startswith("export "):
        key = key[len("export "):].strip()
    if not key:
        return None
    val = val.strip()
    if len(val) >= 2 and val[0] == val[-1] and val[0] in {'"', "'"}:
        val = val[1:-1]
    return key, val


def load_env_file(path: Path = ENV_FILE) -> Dict[str, str]:
    """
    Copy settings from a dotenv file into os.environ without overriding what is already set.
    Returns the keys actually applied. A missing or unreadable file applies nothing.
    """
    applied: Dict[str, str] = {}
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError):
        return applied
    for line in lines:
        pair = parse_env_line(line)
        if pair is None:
            continue
        key, val = pair
        if key in os.environ:
            continue
        os.environ[key] = val
        applied[key] = val
    return applied


# Tests control the environment themselves
if not os.getenv("PYTEST_CURRENT_TEST"):
    load_env_file()
