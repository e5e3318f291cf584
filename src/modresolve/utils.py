"""Path helpers shared by every resolution strategy.

All helpers are pure string/path functions. Output specifiers are always
POSIX-separated, regardless of the platform the resolver runs on.

Example:
    >>> to_local_path("src/utils")
    './src/utils'
    >>> relative_from("/proj", "/proj/pages/index.js", "/proj/src/utils/helper")
    '../src/utils/helper'
"""

import os
from typing import Tuple

RELATIVE_PREFIXES = ("./", "../")


def to_posix_path(path: str) -> str:
    """Replace platform path separators with forward slashes."""
    path = path.replace("\\", "/")
    if os.sep != "/":
        path = path.replace(os.sep, "/")
    return path


def is_relative_path(path: str) -> bool:
    """Return True for ``./x``, ``../x`` and filesystem-absolute paths.

    Bare package names, scoped ones (``@scope/pkg``) included, are not
    relative.
    """
    return path.startswith(RELATIVE_PREFIXES) or os.path.isabs(path)


def to_local_path(path: str) -> str:
    """Prefix ``./`` so a path can never be read as a bare package name.

    Empty strings, ``.``/``..`` and already-relative or absolute paths are
    returned as-is, which makes the function idempotent.
    """
    if not path or path in (".", "..") or is_relative_path(path):
        return path
    return f"./{path}"


def _resolve(cwd: str, filename: str) -> str:
    if os.path.isabs(filename):
        return os.path.normpath(filename)
    return os.path.normpath(os.path.join(cwd, filename))


def map_to_relative(cwd: str, current_file: str, target: str) -> str:
    """Relative path from the directory of ``current_file`` to ``target``.

    Both paths are resolved against ``cwd`` first. The result has no
    ``./`` prefix; use :func:`relative_from` for a local specifier.
    """
    from_dir = _resolve(cwd, os.path.dirname(current_file))
    to_path = _resolve(cwd, os.path.normpath(target))
    return to_posix_path(os.path.relpath(to_path, from_dir))


def relative_from(cwd: str, from_file: str, to_file: str) -> str:
    """Local specifier pointing from ``from_file`` to ``to_file``.

    Sibling files yield ``./x``, never a bare ``x``.
    """
    return to_local_path(map_to_relative(cwd, from_file, to_file))


def strip_extension(path: str, strip_extensions) -> Tuple[str, str]:
    """Split the basename of ``path`` on the first matching extension.

    Returns:
        Tuple of (basename without extension, stripped extension). The
        extension is empty when none of ``strip_extensions`` matched.
    """
    name = os.path.basename(path)
    for extension in strip_extensions:
        if extension and name.endswith(extension):
            return name[: -len(extension)], extension
    return name, ""


def replace_extension(path: str, options) -> str:
    """Rewrite the extension of ``path`` per the extension-rewrite rules.

    Keys of ``options.extension_map`` are checked first, then
    ``options.strip_extensions``. The first extension the basename ends with
    is removed and replaced with ``options.extension_map[ext]`` (nothing when
    unmapped). Paths ending with none of them are returned unchanged.
    """
    candidates = [*options.extension_map, *options.strip_extensions]
    name, extension = strip_extension(path, candidates)
    if not extension:
        return path

    name += options.extension_map.get(extension, "")
    dirname = os.path.dirname(path)
    if not dirname:
        return name
    return f"{dirname}/{name}"
