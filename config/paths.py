import os
import sys
from pathlib import Path


APP_NAME = "CatFocus"


def _platform_data_root() -> Path:
    if sys.platform.startswith("win"):
        base = os.getenv("APPDATA")
        return Path(base) if base else Path.home() / "AppData" / "Roaming"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    xdg = os.getenv("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


def app_data_dir() -> Path:
    primary = _platform_data_root() / APP_NAME
    try:
        primary.mkdir(parents=True, exist_ok=True)
        return primary
    except OSError:
        # read-only home (lab kiosks): keep data next to the working copy
        fallback = Path.cwd() / "data" / "_appdata"
        fallback.mkdir(parents=True, exist_ok=True)
        return fallback
