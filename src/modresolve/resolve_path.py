"""Module path resolution - rewrite an import specifier for a source file.

Three strategies are tried in a fixed order, and the first one returning a
specifier wins:

    1. Alias table (``@utils/x`` -> ``../src/utils/x``)
    2. Root directories (``components/Button`` -> ``./components/Button``)
    3. Third-party table (relative imports inside a module boundary)

``None`` means no strategy applied and the import must be left untouched.

Example:
    >>> resolve_path("@utils/helper", "pages/index.js", {
    ...     "cwd": "/proj",
    ...     "alias": {"@utils": "./src/utils"},
    ... })
    '../src/utils/helper'
"""

import logging
import os
import posixpath
from typing import Any, Optional

from .options import ResolverOptions, normalize_options
from .utils import (
    is_relative_path,
    map_to_relative,
    relative_from,
    replace_extension,
    to_local_path,
    to_posix_path,
)

logger = logging.getLogger(__name__)


def _collapse_index(relative_path: str, source_path: str) -> str:
    # a directory hit resolved through its index file stays a directory import
    if posixpath.basename(relative_path) != "index":
        return relative_path
    if posixpath.basename(source_path.rstrip("/")) == "index":
        return relative_path
    return posixpath.dirname(relative_path) or "."


def get_relative_path(
    source_path: str, current_file: str, resolved_file: str, options: ResolverOptions
) -> str:
    """Local specifier from ``current_file`` to a file found on disk.

    When the real extension of ``resolved_file`` differs from the one written
    in ``source_path``, the extension is rewritten with ``replace_extension``.
    Otherwise the written form is kept.
    """
    real_extension = os.path.splitext(resolved_file)[1]
    source_extension = os.path.splitext(source_path)[1]

    relative_path = map_to_relative(options.cwd, current_file, resolved_file)
    if real_extension != source_extension:
        relative_path = _collapse_index(replace_extension(relative_path, options), source_path)

    return to_local_path(to_posix_path(relative_path))


def find_path_in_roots(source_path: str, options: ResolverOptions) -> Optional[str]:
    """Search each root directory in order; the first hit wins."""
    for basedir in options.root:
        resolved = options.resolver(f"./{source_path}", basedir, options.extensions)
        if resolved is not None:
            logger.debug("Found %r in root %s: %s", source_path, basedir, resolved)
            return resolved
    return None


def resolve_path_from_root_config(
    source_path: str, current_file: str, options: ResolverOptions
) -> Optional[str]:
    resolved = find_path_in_roots(source_path, options)
    if resolved is None:
        return None
    return get_relative_path(source_path, current_file, resolved, options)


def resolve_path_from_third_party(
    source_path: str, current_file: str, options: ResolverOptions
) -> Optional[str]:
    """Map relative imports inside the module boundary by basename.

    The boundary table is tried first, then main alias entries that carry
    a literal ``file_path``. Bare specifiers are returned unchanged, as they
    already resolve.
    """
    if not is_relative_path(source_path):
        return source_path

    marker = options.third_party.module
    if not marker or (marker not in current_file and marker not in to_posix_path(current_file)):
        return None

    filename = source_path.split("/")[-1]
    literal_aliases = [entry for entry in options.alias if entry.file_path is not None]
    for entry in (*options.third_party.alias, *literal_aliases):
        if entry.match(filename) is not None:
            return entry.file_path
    return None


def check_if_package_exists(module_path: str, current_file: str, options: ResolverOptions) -> bool:
    """Warn when an aliased external module cannot be found.

    Diagnostic only: the caller uses the aliased specifier either way.
    """
    resolved = options.resolver(module_path, os.path.dirname(current_file), options.extensions)
    if resolved is None and options.loglevel != "silent":
        warn = options.warn or logger.warning
        warn(f'Could not resolve "{module_path}" in file {current_file}.')
    return resolved is not None


def _resolve_relative_alias(
    aliased_path: str, current_file: str, options: ResolverOptions
) -> str:
    target = os.path.normpath(os.path.join(options.cwd, aliased_path))
    resolved = options.resolver(aliased_path, options.cwd, options.extensions)
    # only reconcile extensions when the hit is the target itself or target + extension
    if resolved is not None and (resolved == target or os.path.splitext(resolved)[0] == target):
        return get_relative_path(aliased_path, current_file, resolved, options)
    return relative_from(options.cwd, current_file, aliased_path)


def resolve_path_from_alias_config(
    source_path: str, current_file: str, options: ResolverOptions
) -> Optional[str]:
    aliased_path = None
    for entry in options.alias:
        match = entry.match(source_path)
        if match is None:
            continue
        aliased_path = entry.substitute(match)
        logger.debug("Alias %r matched %r -> %r", entry.matcher, source_path, aliased_path)
        break

    if not aliased_path:
        return None

    if is_relative_path(aliased_path):
        return _resolve_relative_alias(aliased_path, current_file, options)

    if options.verify_external_aliases:
        check_if_package_exists(aliased_path, current_file, options)

    return aliased_path


RESOLVERS = (
    resolve_path_from_alias_config,
    resolve_path_from_root_config,
    resolve_path_from_third_party,
)


def resolve_path(source_path: str, current_file: str, options: Any = None) -> Optional[str]:
    """Compute the specifier that should replace ``source_path``.

    Args:
        source_path: Specifier as written in the import.
        current_file: File containing the import. Relative paths are taken
            from the process working directory, never from ``options.cwd``.
        options: Raw options mapping or a ResolverOptions.

    Returns:
        The rewritten specifier, or None to leave the import unchanged.
    """
    absolute_current_file = os.path.abspath(current_file)
    normalized = normalize_options(absolute_current_file, options)

    resolved = None
    for resolver in RESOLVERS:
        resolved = resolver(source_path, absolute_current_file, normalized)
        if resolved is not None:
            break

    # a bare specifier handed back as-is carries no rewrite
    if resolved == source_path and not is_relative_path(source_path):
        return None
    return resolved
