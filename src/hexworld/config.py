"""Map configuration loading from TOML files."""

import tomllib
from pathlib import Path

from .exceptions import ConfigNotFoundError
from .generation.config import MapConfig

CONFIGS_DIR = Path(__file__).parent.parent.parent / "configs"


def load_config(config_path: Path) -> MapConfig:
    """Load a map configuration from a TOML file.

    Tables that are left out keep their defaults.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed MapConfig.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
        pydantic.ValidationError: If values fail validation.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return MapConfig.model_validate(data)


def find_config(name: str) -> Path:
    """Find a config file by name.

    Searches in the following order:
    1. Exact path if name contains path separator or ends with .toml
    2. configs/{name}.toml
    3. configs/{name}

    Raises:
        ConfigNotFoundError: If config file is not found.
    """
    if "/" in name or name.endswith(".toml"):
        path = Path(name)
        if path.exists():
            return path
        raise ConfigNotFoundError(f"Config file not found: {name}")

    config_path = CONFIGS_DIR / f"{name}.toml"
    if config_path.exists():
        return config_path

    config_path = CONFIGS_DIR / name
    if config_path.exists():
        return config_path

    raise ConfigNotFoundError(
        f"Config '{name}' not found in {CONFIGS_DIR}. "
        f"Available configs: {list_configs()}"
    )


def list_configs() -> list[str]:
    """List available config names."""
    if not CONFIGS_DIR.exists():
        return []
    return sorted(p.stem for p in CONFIGS_DIR.glob("*.toml"))
