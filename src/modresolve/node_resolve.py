"""Default filesystem resolution primitive.

A small Node-style lookup used when the caller does not inject its own
``resolver``. It covers what the resolution strategies need:

- Files, tried as written and then with each extension in order
- Directories, through the ``main`` field of ``package.json`` and then
  ``index`` + extension
- Bare specifiers, looked up in ``node_modules`` of the base directory and
  every ancestor

``exports`` maps and conditional resolution are out of scope.
"""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence

from .utils import is_relative_path

logger = logging.getLogger(__name__)


def _load_as_file(path: str, extensions: Sequence[str]) -> Optional[str]:
    if os.path.isfile(path):
        return path
    for ext in extensions:
        candidate = path + ext
        if os.path.isfile(candidate):
            return candidate
    return None


def _package_main(directory: str) -> Optional[str]:
    """Read the ``main`` field of ``directory/package.json``, if any."""
    manifest = Path(directory) / "package.json"
    if not manifest.is_file():
        return None

    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError):
        logger.debug("Ignoring unreadable package.json in %s", directory)
        return None

    main = data.get("main") if isinstance(data, dict) else None
    return main if isinstance(main, str) and main else None


def _load_index(directory: str, extensions: Sequence[str]) -> Optional[str]:
    for ext in extensions:
        candidate = os.path.join(directory, "index" + ext)
        if os.path.isfile(candidate):
            return candidate
    return None


def _load_as_directory(directory: str, extensions: Sequence[str]) -> Optional[str]:
    if not os.path.isdir(directory):
        return None

    main = _package_main(directory)
    if main:
        main_path = os.path.normpath(os.path.join(directory, main))
        found = _load_as_file(main_path, extensions) or _load_index(main_path, extensions)
        if found:
            return found

    return _load_index(directory, extensions)


def _load(path: str, extensions: Sequence[str]) -> Optional[str]:
    path = os.path.normpath(path)
    return _load_as_file(path, extensions) or _load_as_directory(path, extensions)


def node_modules_paths(basedir: str) -> List[str]:
    """List ``node_modules`` directories from ``basedir`` up to the root."""
    paths = []
    current = Path(os.path.abspath(basedir))
    for directory in (current, *current.parents):
        if directory.name == "node_modules":
            continue
        paths.append(str(directory / "node_modules"))
    return paths


def node_resolve_path(
    specifier: str, basedir: str, extensions: Sequence[str]
) -> Optional[str]:
    """Resolve ``specifier`` from ``basedir`` to an absolute file path.

    Args:
        specifier: Relative, absolute or bare module specifier.
        basedir: Directory the lookup starts from.
        extensions: Extensions to try, in priority order.

    Returns:
        Absolute path of the file, or None if nothing matched.

    Example:
        >>> node_resolve_path("./utils", "/my/project/src", [".js", ".ts"])
        '/my/project/src/utils.ts'
    """
    basedir = os.path.abspath(basedir)

    if is_relative_path(specifier) or specifier in (".", ".."):
        found = _load(os.path.join(basedir, specifier), extensions)
        return os.path.abspath(found) if found else None

    for modules_dir in node_modules_paths(basedir):
        found = _load(os.path.join(modules_dir, specifier), extensions)
        if found:
            return os.path.abspath(found)

    return None
