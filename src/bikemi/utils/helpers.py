"""Helper utilities."""

from pathlib import Path

import yaml

REQUIRED_SECTIONS = ["data", "time", "binning", "prediction"]


def load_config(config_path: str = "config.yaml") -> dict:
    """Load configuration from YAML file.

    A relative path that does not exist from the working directory is
    looked up from the project root.

    Args:
        config_path: Path to config file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If the file exists in neither location
        ValueError: If a required section is missing
    """
    path = Path(config_path)
    if not path.exists() and not path.is_absolute():
        path = get_project_root() / path
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path) as f:
        config = yaml.safe_load(f) or {}

    missing = [section for section in REQUIRED_SECTIONS if section not in config]
    if missing:
        raise ValueError(f"Config {config_path} is missing sections: {missing}")

    return config


def get_project_root() -> Path:
    """Get the project root directory (the one holding config.yaml)."""
    return Path(__file__).parents[3]
