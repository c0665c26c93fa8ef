"""Config path resolution for two-tier config system."""

from pathlib import Path
from typing import Optional

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def get_user_config_path() -> Path:
    """Get user config path: ~/.infraplan/config.yaml"""
    home = Path.home()
    return home / ".infraplan" / "config.yaml"


def get_project_config_path() -> Optional[Path]:
    """Get project config path: .infraplan/config.yaml (from current working directory)"""
    cwd = Path.cwd()
    project_config = cwd / ".infraplan" / "config.yaml"
    if project_config.exists():
        return project_config
    return None
