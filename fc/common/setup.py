import os
import sys
from pathlib import Path
from dataclasses import dataclass

APP_DIR_NAME = "FloatingClock"

# Creates the directory (and parents) if missing, then hands the path back.
def ensure_directory(path: Path):
    path.mkdir(parents=True,exist_ok=True)
    return path

# Picks the per-user base folder the OS expects application data to live in.
def _user_data_base() -> Path:
    if sys.platform.startswith("win"):
        appdata = os.getenv("APPDATA")
        if not appdata:
            raise RuntimeError("Missing APPDATA environment variable, cannot determine data directories.")
        return Path(appdata)
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    xdg = os.getenv("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"

# Dataclass for accessing paths across program.
@dataclass(frozen=False)
class ProjectPaths:

    root: Path
    data: Path
    assets: Path
    logs: Path

    @property
    def settings_file(self) -> Path:
        return self.data / "settings.json"

    @property
    def ledger_file(self) -> Path:
        return self.data / "timer_data.json"

    @staticmethod
    def build():
        # Folder for the install itself, no user-specific files
        if getattr(sys, "frozen", False):
            root = Path(sys.executable).resolve().parent
        else:
            root = Path(__file__).resolve().parents[2]

        # Runtime assets are optional, the chime sound gets synthesised if none is shipped.
        assets = root / "assets"

        # FLOATING_CLOCK_DATA wins over the OS default, handy for portable installs and tests.
        override = os.getenv("FLOATING_CLOCK_DATA")
        data = ensure_directory(Path(override) if override else _user_data_base() / APP_DIR_NAME)
        logs = ensure_directory(data / "logs")

        return ProjectPaths(
            root = root,
            data = data,
            assets = assets,
            logs = logs,
        )
PATHS = ProjectPaths.build()
