import yaml
from pathlib import Path
from typing import Dict, Any, Iterable, Optional, Tuple

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"


def load_config(config_path: Optional[str] = None,
                overrides: Optional[Iterable[Tuple[str, Any]]] = None) -> Dict[str, Any]:
    """
    Load the YAML configuration of a gas exposure run.

    Args:
        config_path: Explicit configuration file; ``config.yaml`` next to this
                     module is used when omitted.
        overrides: ``(dotted.key, value)`` pairs applied after loading. String
                   values are parsed as YAML scalars, so ``"500"`` becomes 500.

    Returns:
        The configuration as nested dictionaries.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the document root is not a mapping.
    """
    path = DEFAULT_CONFIG_PATH if config_path is None else Path(config_path)
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found at: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")

    if overrides:
        apply_overrides(config, overrides)
    return config


def apply_overrides(config: Dict[str, Any], overrides: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    """Set dotted keys in place, creating intermediate sections as needed."""
    for key, value in overrides:
        if value is None:
            continue
        if isinstance(value, str):
            value = _coerce(value)
        *parents, leaf = key.split('.')
        node = config
        for part in parents:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[leaf] = value
    return config


def _coerce(text: str) -> Any:
    # "1:00" stays a string; yaml.safe_load would read it as sexagesimal 60
    for cast in (int, float):
        try:
            return cast(text)
        except ValueError:
            continue
    return text


def get_section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return a config section as a dict, treating missing or null sections as empty."""
    section = config.get(name) if isinstance(config, dict) else None
    return section if isinstance(section, dict) else {}
