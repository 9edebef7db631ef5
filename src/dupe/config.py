"""Configuration loading, merging, and interactive creation."""

from __future__ import annotations

import logging
import os
import pathlib
import tomllib


logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.toml"

_DEFAULTS: dict[str, object] = {
    "clear_screen": True,
    "progress": True,
    "workers": 1,
    "exclude": [],
    "exclude_dir": [],
}

_BOOL_KEYS = {"clear_screen", "progress"}
_LIST_KEYS = {"exclude", "exclude_dir"}


def _config_dir() -> pathlib.Path:
    """Return the dupe config directory."""
    base = pathlib.Path(os.environ.get("XDG_CONFIG_HOME", "~/.config")).expanduser()
    return base / "dupe"


def load_config(config_dir: pathlib.Path | None = None) -> dict:
    """Load config.toml and return its contents as a dict.

    Returns {} if no file exists or on parse error.
    """
    if config_dir is None:
        config_dir = _config_dir()
    path = config_dir / CONFIG_FILENAME
    if not path.exists():
        return {}
    try:
        return tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Ignoring unreadable config file '{path}': {e}")
        return {}


def _coerce_workers(value) -> int | None:
    """Return value as a worker count, or None if it is not a positive integer."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return None
    return value


def _coerce_patterns(key: str, value) -> list[str]:
    """Return a config pattern list; a lone string counts as one pattern."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return value
    logger.warning(f"Invalid '{key}' value in config: {value!r}, ignoring")
    return []


def merge_config_into_args(args, config: dict) -> None:
    """Three-layer merge: CLI > config > hardcoded defaults.

    Mutates *args* in place.
    """
    for key in _BOOL_KEYS:
        cli_val = getattr(args, key, None)
        if cli_val is not None:
            continue
        cfg_val = config.get(key)
        if cfg_val is not None:
            setattr(args, key, bool(cfg_val))
        else:
            setattr(args, key, _DEFAULTS[key])

    # Workers — validate
    if getattr(args, "workers", None) is None:
        cfg_val = _coerce_workers(config.get("workers"))
        if cfg_val is None and "workers" in config:
            logger.warning(f"Invalid 'workers' value in config: {config['workers']!r}, using {_DEFAULTS['workers']}")
        args.workers = cfg_val if cfg_val is not None else _DEFAULTS["workers"]

    # List fields — merge CLI + config
    for key in _LIST_KEYS:
        cli_val = getattr(args, key, None) or []
        cfg_val = _coerce_patterns(key, config.get(key))
        setattr(args, key, cli_val + [v for v in cfg_val if v not in cli_val])


def create_config_interactive(
    config_dir: pathlib.Path | None = None,
    input_fn=input,
    print_fn=print,
) -> pathlib.Path:
    """Interactively create or update config.toml.

    Returns the path to the written config file.
    """
    if config_dir is None:
        config_dir = _config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    existing = load_config(config_dir)

    settings: list[tuple[str, str, str]] = [
        ("clear_screen", "Clear screen before the first duplicate (true/false)", "true"),
        ("progress", "Show hashing progress bar (true/false)", "true"),
        ("workers", "Number of hashing workers", str(_DEFAULTS["workers"])),
        ("exclude", "File patterns to exclude (comma separated)", ""),
        ("exclude_dir", "Directory patterns to exclude (comma separated)", ""),
    ]

    result: dict[str, object] = {}

    for key, label, hardcoded_default in settings:
        current = existing.get(key, hardcoded_default)
        if key in _LIST_KEYS:
            current = _coerce_patterns(key, existing.get(key))
        if isinstance(current, list):
            default = ", ".join(current)
        elif isinstance(current, bool):
            default = str(current).lower()
        else:
            default = str(current)
        prompt = f"  {label} [{default}]: " if default else f"  {label}: "
        value = input_fn(prompt).strip()
        if not value:
            value = default
        if key in _BOOL_KEYS:
            result[key] = value.lower() in ("true", "1", "yes")
        elif key in _LIST_KEYS:
            result[key] = [v.strip() for v in value.split(",") if v.strip()]
        else:
            workers = _coerce_workers(int(value)) if value.isdigit() else None
            result[key] = workers if workers is not None else _DEFAULTS["workers"]

    # Drop values equal to the defaults to keep config clean
    for key, default in _DEFAULTS.items():
        if key in result and result[key] == default:
            del result[key]

    path = config_dir / CONFIG_FILENAME
    path.write_text(_to_toml(result))
    print_fn(f"Configuration saved to {path}")
    return path


def _to_toml(data: dict) -> str:
    """Serialize a flat dict to TOML format."""
    lines: list[str] = []
    for key, value in data.items():
        if isinstance(value, bool):
            lines.append(f"{key} = {str(value).lower()}")
        elif isinstance(value, list):
            items = ", ".join(f'"{v}"' for v in value)
            lines.append(f"{key} = [{items}]")
        elif isinstance(value, str):
            lines.append(f'{key} = "{value}"')
        elif value is None:
            continue
        else:
            lines.append(f"{key} = {value}")
    return "\n".join(lines) + "\n" if lines else ""
