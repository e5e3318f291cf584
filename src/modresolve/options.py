"""Options normalization - turns raw configuration into ResolverOptions.

Raw options are a plain mapping (from code or a config file). They are
normalized once per resolution, scoped to the file being compiled:

- ``overrides`` entries whose ``files`` glob matches the current file are
  merged over the defaults (first match wins)
- ``root`` globs are expanded and anchored on ``cwd``
- ``alias`` mappings become an ordered tuple of AliasEntry objects

Example:
    >>> opts = normalize_options("/proj/src/app.js", {
    ...     "cwd": "/proj",
    ...     "root": ["./src"],
    ...     "alias": {"@utils": "./src/utils"},
    ... })
    >>> opts.root
    ('/proj/src',)
"""

import glob
import logging
import os
import re
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .config import ConfigError
from .node_resolve import node_resolve_path
from .utils import to_posix_path

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".js", ".jsx", ".es", ".es6", ".mjs")
LOG_LEVELS = ("silent", "error", "warn", "info", "debug")
BABEL_CONFIG_FILES = (
    ".babelrc",
    ".babelrc.json",
    ".babelrc.js",
    "babel.config.js",
    "babel.config.json",
)

# camelCase spellings used by Babel-style config files
KEY_ALIASES = {
    "stripExtensions": "strip_extensions",
    "extensionMap": "extension_map",
    "verifyExternalAliases": "verify_external_aliases",
    "thirdParty": "third_party",
}

KNOWN_KEYS = {
    "cwd",
    "root",
    "extensions",
    "strip_extensions",
    "extension_map",
    "alias",
    "loglevel",
    "verify_external_aliases",
    "third_party",
    "resolver",
    "warn",
    "overrides",
}

_BACKREF = re.compile(r"\\\d+")


@dataclass(frozen=True)
class AliasEntry:
    """One row of an alias table.

    Attributes:
        matcher: Object with a ``search(str)`` method returning a match or
            None. Compiled regular expressions are the usual choice.
        substitute: Callable taking the match and returning the replacement
            specifier.
        file_path: Literal replacement used by the third-party basename lookup.
    """

    matcher: Any
    substitute: Callable[[Any], str]
    file_path: Optional[str] = None

    def match(self, value: str):
        return self.matcher.search(value)


@dataclass(frozen=True)
class ThirdPartyOptions:
    """Module boundary marker and the basename table used inside it."""

    module: str = ""
    alias: Tuple[AliasEntry, ...] = ()


@dataclass(frozen=True)
class ResolverOptions:
    """Fully resolved options for a single file.

    ``cwd`` only anchors relative-path math and relative alias targets. The
    file being compiled is always located from the process working
    directory.
    """

    cwd: str
    root: Tuple[str, ...] = ()
    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    strip_extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    extension_map: Mapping[str, str] = field(default_factory=dict)
    alias: Tuple[AliasEntry, ...] = ()
    loglevel: str = "warn"
    verify_external_aliases: bool = True
    third_party: ThirdPartyOptions = field(default_factory=ThirdPartyOptions)
    resolver: Callable[[str, str, Sequence[str]], Optional[str]] = node_resolve_path
    warn: Optional[Callable[[str], None]] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view, used by ``modresolve config``."""
        return {
            "cwd": self.cwd,
            "root": list(self.root),
            "extensions": list(self.extensions),
            "strip_extensions": list(self.strip_extensions),
            "extension_map": dict(self.extension_map),
            "alias": [_describe_entry(entry) for entry in self.alias],
            "loglevel": self.loglevel,
            "verify_external_aliases": self.verify_external_aliases,
            "third_party": {
                "module": self.third_party.module,
                "alias": [_describe_entry(entry) for entry in self.third_party.alias],
            },
        }


def _describe_entry(entry: AliasEntry) -> Dict[str, str]:
    described = {"pattern": getattr(entry.matcher, "pattern", repr(entry.matcher))}
    if entry.file_path is not None:
        described["file_path"] = entry.file_path
    return described


def _canonical(raw: Mapping[str, Any]) -> Dict[str, Any]:
    return {KEY_ALIASES.get(key, key): value for key, value in raw.items()}


def _group(match, index: int) -> str:
    try:
        return match.group(index) or ""
    except IndexError:
        return ""


def _alias_substitute(value: Any, is_regexp: bool) -> Callable[[Any], str]:
    """Build the substitution for an alias value.

    Literal keys append whatever followed the key (``/rest`` or nothing).
    Regular-expression keys expand ``\\1``..``\\9`` back references in the
    value; ``\\\\`` stays a literal backslash.
    """
    if callable(value):
        return value
    if not isinstance(value, str):
        raise ConfigError(f"Alias target must be a string or callable, got {value!r}")

    if not is_regexp:
        return lambda match: f"{value}{_group(match, 1)}"

    parts = value.split("\\\\")

    def substitute(match) -> str:
        return "\\".join(
            _BACKREF.sub(lambda ref: _group(match, int(ref.group(0)[1:])), part)
            for part in parts
        )

    return substitute


def _alias_entry(key: Any, value: Any, file_path: Optional[str] = None) -> AliasEntry:
    if isinstance(key, str):
        is_regexp = key.startswith("^") or key.endswith("$")
        matcher = re.compile(key if is_regexp else f"^{re.escape(key)}(/.*|)$")
    elif hasattr(key, "search"):
        matcher, is_regexp = key, True
    else:
        raise ConfigError(f"Alias key must be a string or pattern, got {key!r}")
    return AliasEntry(matcher, _alias_substitute(value, is_regexp), file_path)


def normalize_alias(raw_alias: Any) -> Tuple[AliasEntry, ...]:
    """Normalize an alias option into an ordered tuple of entries.

    Accepts a mapping, or a list mixing mappings, AliasEntry objects and
    ``(matcher, substitute[, file_path])`` tuples. Mapping order is kept.
    """
    if not raw_alias:
        return ()

    items = raw_alias if isinstance(raw_alias, list) else [raw_alias]
    entries: List[AliasEntry] = []
    for item in items:
        if isinstance(item, AliasEntry):
            entries.append(item)
        elif isinstance(item, Mapping):
            entries.extend(_alias_entry(key, value) for key, value in item.items())
        elif isinstance(item, tuple) and len(item) in (2, 3):
            key, value, *rest = item
            entries.append(_alias_entry(key, value, rest[0] if rest else None))
        else:
            raise ConfigError(f"Invalid alias entry: {item!r}")
    return tuple(entries)


def normalize_third_party(raw: Any) -> ThirdPartyOptions:
    if not raw:
        return ThirdPartyOptions()
    if not isinstance(raw, Mapping):
        raise ConfigError("third_party must be a mapping with 'module' and 'alias'")

    module = raw.get("module") or ""
    if not isinstance(module, str):
        raise ConfigError(f"third_party.module must be a string, got {module!r}")

    alias = raw.get("alias") or {}
    if not isinstance(alias, Mapping):
        raise ConfigError("third_party.alias must be a mapping")

    entries = []
    for key, file_path in alias.items():
        if not isinstance(file_path, str):
            raise ConfigError(f"third_party.alias target must be a string, got {file_path!r}")
        entries.append(_alias_entry(key, file_path, file_path))
    return ThirdPartyOptions(module=module, alias=tuple(entries))


def _find_ancestor_with(start_dir: str, markers: Sequence[str]) -> Optional[str]:
    current = os.path.abspath(start_dir)
    while True:
        if any(os.path.isfile(os.path.join(current, marker)) for marker in markers):
            return current
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def normalize_cwd(cwd: Any, current_file: str) -> str:
    """Resolve the ``cwd`` option.

    ``"packagejson"`` and ``"babelrc"`` pick the nearest ancestor of the
    current file holding a ``package.json`` or Babel config, falling back
    to the process working directory.
    """
    if cwd in ("packagejson", "babelrc"):
        markers = ("package.json",) if cwd == "packagejson" else BABEL_CONFIG_FILES
        found = _find_ancestor_with(os.path.dirname(current_file), markers)
        return found or os.getcwd()
    if cwd is None:
        return os.getcwd()
    if not isinstance(cwd, str):
        raise ConfigError(f"cwd must be a string, got {cwd!r}")
    return os.path.abspath(cwd)


def normalize_root(raw_root: Any, cwd: str) -> Tuple[str, ...]:
    """Anchor root directories on ``cwd`` and expand glob patterns.

    Glob results that are not directories are dropped; literal entries are
    kept even when they do not exist.
    """
    if not raw_root:
        return ()

    entries = [raw_root] if isinstance(raw_root, str) else raw_root
    if not isinstance(entries, (list, tuple)):
        raise ConfigError(f"root must be a string or list, got {raw_root!r}")

    roots: List[str] = []
    for entry in entries:
        if not isinstance(entry, str):
            raise ConfigError(f"root entries must be strings, got {entry!r}")
        abs_dir = os.path.normpath(os.path.join(cwd, entry))
        if any(char in entry for char in "*?["):
            roots.extend(path for path in sorted(glob.glob(abs_dir)) if os.path.isdir(path))
        else:
            roots.append(abs_dir)
    return tuple(roots)


def _string_tuple(value: Any, name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{name} must be a list of strings, got {value!r}")
    return tuple(value)


def _glob_variants(pattern: str):
    yield pattern
    if "**/" in pattern:
        # "**/" also matches zero directories
        yield pattern.replace("**/", "")


def _scope_matches(current_file: str, cwd: str, pattern: str) -> bool:
    file_posix = to_posix_path(current_file)
    abs_pattern = to_posix_path(os.path.normpath(os.path.join(cwd, pattern)))

    if pattern.endswith(("/", "\\")) or os.path.isdir(abs_pattern):
        return file_posix.startswith(abs_pattern.rstrip("/") + "/")

    try:
        relative = to_posix_path(os.path.relpath(current_file, cwd))
    except ValueError:
        relative = file_posix
    return any(
        fnmatchcase(relative, variant) or fnmatchcase(file_posix, variant)
        for candidate in (pattern, abs_pattern)
        for variant in _glob_variants(to_posix_path(candidate))
    )


def select_scope(
    current_file: str, cwd: str, overrides: Sequence[Mapping[str, Any]]
) -> Optional[Dict[str, Any]]:
    """Return the first override whose ``files`` matches, minus ``files``."""
    if not isinstance(overrides, (list, tuple)):
        raise ConfigError("overrides must be a list")

    for override in overrides:
        if not isinstance(override, Mapping) or "files" not in override:
            raise ConfigError(f"Each override needs a 'files' pattern: {override!r}")
        patterns = override["files"]
        if isinstance(patterns, str):
            patterns = [patterns]
        if any(_scope_matches(current_file, cwd, pattern) for pattern in patterns):
            scope = _canonical(override)
            scope.pop("files")
            return scope
    return None


def normalize_options(current_file: str, opts: Any = None) -> ResolverOptions:
    """Produce the ResolverOptions that apply to ``current_file``.

    Args:
        current_file: Path of the file containing the import.
        opts: Raw options mapping, or an already built ResolverOptions
            (returned unchanged).

    Returns:
        ResolverOptions scoped to the file.

    Raises:
        ConfigError: If an option has the wrong type.
        re.error: If an alias regular expression is malformed.
    """
    if isinstance(opts, ResolverOptions):
        return opts
    if opts is not None and not isinstance(opts, Mapping):
        raise ConfigError(f"Options must be a mapping, got {type(opts).__name__}")

    current_file = os.path.abspath(current_file)
    raw = _canonical(opts or {})
    overrides = raw.pop("overrides", None) or []

    cwd = normalize_cwd(raw.get("cwd"), current_file)
    scope = select_scope(current_file, cwd, overrides)
    if scope is not None:
        logger.debug("Using override scope for %s", current_file)
        raw.update(scope)
        if "cwd" in scope:
            cwd = normalize_cwd(scope["cwd"], current_file)

    for key in raw:
        if key not in KNOWN_KEYS:
            logger.debug("Ignoring unknown option %r", key)

    extensions = _string_tuple(raw.get("extensions"), "extensions", DEFAULT_EXTENSIONS)
    strip_extensions = _string_tuple(raw.get("strip_extensions"), "strip_extensions", extensions)

    extension_map = raw.get("extension_map") or {}
    if not isinstance(extension_map, Mapping) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in extension_map.items()
    ):
        raise ConfigError(f"extension_map must map strings to strings, got {extension_map!r}")

    loglevel = raw.get("loglevel") or "warn"
    if loglevel not in LOG_LEVELS:
        raise ConfigError(f"loglevel must be one of {', '.join(LOG_LEVELS)}, got {loglevel!r}")

    resolver = raw.get("resolver") or node_resolve_path
    warn = raw.get("warn")
    if not callable(resolver) or (warn is not None and not callable(warn)):
        raise ConfigError("resolver and warn must be callables")

    return ResolverOptions(
        cwd=cwd,
        root=normalize_root(raw.get("root"), cwd),
        extensions=extensions,
        strip_extensions=strip_extensions,
        extension_map=dict(extension_map),
        alias=normalize_alias(raw.get("alias")),
        loglevel=loglevel,
        verify_external_aliases=bool(raw.get("verify_external_aliases", True)),
        third_party=normalize_third_party(raw.get("third_party")),
        resolver=resolver,
        warn=warn,
    )
