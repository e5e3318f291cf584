"""modresolve - import specifier rewriting for source-to-source compilers.

Given an import specifier and the file that contains it, modresolve computes
the specifier that should replace it. Aliased, root-relative and
third-party-mapped imports become resolvable relative or bare specifiers.

Components:
    - resolve_path: Run the alias, root and third-party strategies in order
    - normalize_options: Scope raw options to the file being compiled
    - node_resolve_path: Default Node-style filesystem lookup
    - load_options / find_config: Read options from config files

Example:
    >>> from modresolve import resolve_path
    >>> resolve_path("./foo", "/proj/src/a.js", {
    ...     "root": ["/proj/src"],
    ...     "extensions": [".js", ".ts"],
    ... })
    './foo'
"""

from .config import ConfigError, find_config, load_options
from .node_resolve import node_resolve_path
from .options import (
    AliasEntry,
    ResolverOptions,
    ThirdPartyOptions,
    normalize_options,
)
from .resolve_path import (
    RESOLVERS,
    get_relative_path,
    resolve_path,
    resolve_path_from_alias_config,
    resolve_path_from_root_config,
    resolve_path_from_third_party,
)
from .utils import (
    is_relative_path,
    map_to_relative,
    relative_from,
    replace_extension,
    to_local_path,
    to_posix_path,
)

__version__ = "1.0.0"

__all__ = [
    "__version__",
    # Resolution
    "resolve_path",
    "resolve_path_from_alias_config",
    "resolve_path_from_root_config",
    "resolve_path_from_third_party",
    "get_relative_path",
    "RESOLVERS",
    # Options
    "normalize_options",
    "ResolverOptions",
    "AliasEntry",
    "ThirdPartyOptions",
    "load_options",
    "find_config",
    "ConfigError",
    # Filesystem lookup
    "node_resolve_path",
    # Path helpers
    "to_posix_path",
    "to_local_path",
    "is_relative_path",
    "map_to_relative",
    "relative_from",
    "replace_extension",
]
