"""Loading resolver options from configuration files.

Options can live in three kinds of files:

- ``.modresolverc`` / ``.modresolverc.json``: a JSON object of options
- a Babel-style JSON config whose ``plugins`` list contains a
  ``["module-resolver", {...}]`` entry
- ``pyproject.toml``, in a ``[tool.modresolve]`` table

JSON files may contain ``//`` line comments and ``/* */`` block comments.

Example:
    >>> raw = load_options("/my/project/.modresolverc")
    >>> raw["root"]
    ['./src']
"""

import json
import re
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

CONFIG_FILENAMES = (".modresolverc", ".modresolverc.json")
PLUGIN_NAMES = ("module-resolver", "babel-plugin-module-resolver", "modresolve")


class ConfigError(ValueError):
    """Raised when resolver options cannot be loaded or have the wrong shape."""


_JSON_TOKEN = re.compile(r'"(?:\\.|[^"\\])*"|//[^\n]*|/\*.*?\*/', re.DOTALL)


def _strip_json_comments(content: str) -> str:
    # string literals are matched first so globs like "src/**/*.js" survive
    return _JSON_TOKEN.sub(lambda m: m.group(0) if m.group(0).startswith('"') else "", content)


def _plugin_options(config: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Pull module-resolver options out of a Babel-style ``plugins`` list."""
    for plugin in config.get("plugins", []):
        if isinstance(plugin, list) and plugin and plugin[0] in PLUGIN_NAMES:
            options = plugin[1] if len(plugin) > 1 else {}
            if not isinstance(options, dict):
                raise ConfigError(f"Plugin options for {plugin[0]!r} must be an object")
            return options
        if plugin in PLUGIN_NAMES:
            return {}
    return None


def _load_json(path: Path) -> Dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
        config = json.loads(_strip_json_comments(content))
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    plugin_options = _plugin_options(config)
    return plugin_options if plugin_options is not None else config


def _load_pyproject(path: Path) -> Dict[str, Any]:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    options = data.get("tool", {}).get("modresolve", {})
    if not isinstance(options, dict):
        raise ConfigError(f"[tool.modresolve] in {path} must be a table")
    return options


def load_options(config_path: str) -> Dict[str, Any]:
    """Load raw resolver options from a config file.

    Relative ``cwd`` values are anchored on the config file's directory;
    without one, ``cwd`` defaults to that directory.

    Args:
        config_path: Path to a JSON, Babel-style or ``pyproject.toml`` file.

    Returns:
        Raw options mapping, ready for ``normalize_options``.

    Raises:
        ConfigError: If the file is missing, unreadable or malformed.
    """
    path = Path(config_path)
    if not path.is_file():
        raise ConfigError(f"Config file does not exist: {path}")

    if path.suffix == ".toml":
        options = _load_pyproject(path)
    else:
        options = _load_json(path)

    options = dict(options)
    cwd = options.get("cwd")
    base_dir = path.resolve().parent
    if cwd is None:
        options["cwd"] = str(base_dir)
    elif isinstance(cwd, str) and cwd not in ("packagejson", "babelrc"):
        options["cwd"] = str((base_dir / cwd).resolve())
    return options


def _has_tool_section(pyproject: Path) -> bool:
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return "modresolve" in data.get("tool", {})


def find_config(start_dir: str) -> Optional[Path]:
    """Find the nearest config file at or above ``start_dir``.

    In each directory, ``.modresolverc`` files win over ``pyproject.toml``,
    which only counts when it has a ``[tool.modresolve]`` table.
    """
    current = Path(start_dir).resolve()
    for directory in (current, *current.parents):
        for name in CONFIG_FILENAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        pyproject = directory / "pyproject.toml"
        if pyproject.is_file() and _has_tool_section(pyproject):
            return pyproject
    return None
