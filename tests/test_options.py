"""Tests for options normalization."""

import os
import re

import pytest

from modresolve.config import ConfigError
from modresolve.node_resolve import node_resolve_path
from modresolve.options import (
    DEFAULT_EXTENSIONS,
    AliasEntry,
    ResolverOptions,
    normalize_alias,
    normalize_options,
    normalize_root,
)


def substitute(entry, value):
    return entry.substitute(entry.match(value))


class TestDefaults:
    """Tests for default option values."""

    def test_empty_options(self, tmp_path):
        """Test the defaults produced from no options at all."""
        opts = normalize_options(str(tmp_path / "a.js"))
        assert opts.cwd == os.getcwd()
        assert opts.root == ()
        assert opts.alias == ()
        assert opts.extensions == DEFAULT_EXTENSIONS
        assert opts.strip_extensions == DEFAULT_EXTENSIONS
        assert opts.extension_map == {}
        assert opts.loglevel == "warn"
        assert opts.verify_external_aliases is True
        assert opts.third_party.module == ""
        assert opts.resolver is node_resolve_path
        assert opts.warn is None

    def test_strip_extensions_follow_extensions(self, tmp_path):
        """Test that strip_extensions defaults to the configured extensions."""
        opts = normalize_options(str(tmp_path / "a.js"), {"extensions": [".ts", ".js"]})
        assert opts.strip_extensions == (".ts", ".js")

    def test_camel_case_keys(self, tmp_path):
        """Test that Babel-style camelCase keys are accepted."""
        opts = normalize_options(
            str(tmp_path / "a.js"),
            {
                "stripExtensions": [".ts"],
                "extensionMap": {".ts": ".js"},
                "verifyExternalAliases": False,
                "thirdParty": {"module": "node_modules/ui", "alias": {"widget": "ui-widget"}},
            },
        )
        assert opts.strip_extensions == (".ts",)
        assert opts.extension_map == {".ts": ".js"}
        assert opts.verify_external_aliases is False
        assert opts.third_party.module == "node_modules/ui"

    def test_prebuilt_options_pass_through(self, tmp_path):
        """Test that ResolverOptions are returned unchanged."""
        opts = ResolverOptions(cwd=str(tmp_path))
        assert normalize_options(str(tmp_path / "a.js"), opts) is opts

    def test_pure(self, tmp_path):
        """Test that the same inputs produce equal outputs."""
        raw = {"cwd": str(tmp_path), "root": ["./src"], "extensions": [".js"]}
        first = normalize_options(str(tmp_path / "a.js"), raw)
        second = normalize_options(str(tmp_path / "a.js"), raw)
        assert first.root == second.root
        assert first.extensions == second.extensions
        assert raw == {"cwd": str(tmp_path), "root": ["./src"], "extensions": [".js"]}


class TestCwd:
    """Tests for the cwd option."""

    def test_explicit(self, tmp_path):
        """Test an explicit cwd."""
        opts = normalize_options(str(tmp_path / "a.js"), {"cwd": str(tmp_path)})
        assert opts.cwd == str(tmp_path)

    def test_packagejson(self, tmp_path):
        """Test cwd set to the nearest package.json directory."""
        (tmp_path / "pkg" / "src").mkdir(parents=True)
        (tmp_path / "pkg" / "package.json").write_text("{}")
        opts = normalize_options(str(tmp_path / "pkg" / "src" / "a.js"), {"cwd": "packagejson"})
        assert opts.cwd == str(tmp_path / "pkg")

    def test_babelrc(self, tmp_path):
        """Test cwd set to the nearest Babel config directory."""
        (tmp_path / "app" / "src").mkdir(parents=True)
        (tmp_path / "app" / ".babelrc").write_text("{}")
        opts = normalize_options(str(tmp_path / "app" / "src" / "a.js"), {"cwd": "babelrc"})
        assert opts.cwd == str(tmp_path / "app")


class TestRoot:
    """Tests for root normalization."""

    def test_string_root(self, tmp_path):
        """Test that a single string becomes a one-entry tuple."""
        assert normalize_root("./src", str(tmp_path)) == (str(tmp_path / "src"),)

    def test_order_kept(self, tmp_path):
        """Test that root order is preserved."""
        roots = normalize_root(["./b", "./a", "/abs"], str(tmp_path))
        assert roots == (str(tmp_path / "b"), str(tmp_path / "a"), "/abs")

    def test_glob_expansion(self, tmp_path):
        """Test that glob roots expand to directories only."""
        (tmp_path / "packages" / "one").mkdir(parents=True)
        (tmp_path / "packages" / "two").mkdir()
        (tmp_path / "packages" / "README.md").write_text("")
        roots = normalize_root(["./packages/*"], str(tmp_path))
        assert roots == (str(tmp_path / "packages" / "one"), str(tmp_path / "packages" / "two"))

    def test_invalid(self, tmp_path):
        """Test that non-string roots are rejected."""
        with pytest.raises(ConfigError):
            normalize_root([42], str(tmp_path))


class TestAlias:
    """Tests for alias normalization."""

    def test_literal_key(self):
        """Test that literal keys match the key and any subpath."""
        (entry,) = normalize_alias({"@utils": "./src/utils"})
        assert substitute(entry, "@utils") == "./src/utils"
        assert substitute(entry, "@utils/helper") == "./src/utils/helper"
        assert entry.match("@utilsx") is None
        assert entry.match("x/@utils") is None

    def test_literal_key_is_escaped(self):
        """Test that regex metacharacters in literal keys match literally."""
        (entry,) = normalize_alias({"a.b": "./ab"})
        assert entry.match("a.b/c") is not None
        assert entry.match("axb") is None

    def test_regexp_backrefs(self):
        """Test \\1-style back references in regex aliases."""
        (entry,) = normalize_alias({r"^@namespace/foo-(.+)": r"packages/\1"})
        assert substitute(entry, "@namespace/foo-bar") == "packages/bar"

    def test_regexp_missing_group(self):
        """Test that back references to missing groups expand to nothing."""
        (entry,) = normalize_alias({r"^~/(.+)$": r"./src/\1\2"})
        assert substitute(entry, "~/x") == "./src/x"

    def test_regexp_escaped_backslash(self):
        """Test that a doubled backslash stays a literal backslash."""
        (entry,) = normalize_alias({r"^win-(.+)$": "C:\\\\\\1"})
        assert substitute(entry, "win-dir") == "C:\\dir"

    def test_callable_value(self):
        """Test that callables receive the match object."""
        (entry,) = normalize_alias({r"^@utils\/": lambda m: "./src/utils/" + m.string[7:]})
        assert substitute(entry, "@utils/helper") == "./src/utils/helper"

    def test_order_across_mappings(self):
        """Test that a list of mappings keeps declaration order."""
        entries = normalize_alias([{"b": "./b"}, {"a": "./a", "c": "./c"}])
        assert [e.matcher.pattern for e in entries] == [
            "^b(/.*|)$",
            "^a(/.*|)$",
            "^c(/.*|)$",
        ]

    def test_entries_and_tuples(self):
        """Test prebuilt entries and (matcher, substitute) tuples."""
        prebuilt = AliasEntry(re.compile("^x$"), lambda m: "./x")
        entries = normalize_alias([prebuilt, (re.compile("^y$"), lambda m: "./y")])
        assert entries[0] is prebuilt
        assert substitute(entries[1], "y") == "./y"

    def test_malformed_regexp_propagates(self):
        """Test that invalid regular expressions are not swallowed."""
        with pytest.raises(re.error):
            normalize_alias({"^(unclosed": "./x"})

    def test_invalid_target(self):
        """Test that non-string, non-callable targets are rejected."""
        with pytest.raises(ConfigError):
            normalize_alias({"x": 42})


class TestOverrides:
    """Tests for per-file override scopes."""

    def make_raw(self, tmp_path):
        return {
            "cwd": str(tmp_path),
            "root": ["./src"],
            "extensions": [".js"],
            "overrides": [
                {"files": "legacy/**/*.js", "extensions": [".es6"]},
                {"files": ["vendor/"], "loglevel": "silent", "root": ["./vendor"]},
            ],
        }

    def test_glob_scope(self, tmp_path):
        """Test that a matching glob override replaces keys."""
        opts = normalize_options(str(tmp_path / "legacy" / "a" / "b.js"), self.make_raw(tmp_path))
        assert opts.extensions == (".es6",)
        assert opts.root == (str(tmp_path / "src"),)

    def test_double_star_matches_zero_dirs(self, tmp_path):
        """Test that **/ also matches files directly in the directory."""
        opts = normalize_options(str(tmp_path / "legacy" / "b.js"), self.make_raw(tmp_path))
        assert opts.extensions == (".es6",)

    def test_directory_prefix_scope(self, tmp_path):
        """Test that a trailing slash matches as a directory prefix."""
        opts = normalize_options(str(tmp_path / "vendor" / "x" / "y.js"), self.make_raw(tmp_path))
        assert opts.loglevel == "silent"
        assert opts.root == (str(tmp_path / "vendor"),)
        assert opts.extensions == (".js",)

    def test_scope_miss_falls_back(self, tmp_path):
        """Test that files outside every scope get the defaults."""
        opts = normalize_options(str(tmp_path / "src" / "a.js"), self.make_raw(tmp_path))
        assert opts.extensions == (".js",)
        assert opts.loglevel == "warn"

    def test_override_needs_files(self, tmp_path):
        """Test that overrides without a files key are rejected."""
        with pytest.raises(ConfigError, match="files"):
            normalize_options(str(tmp_path / "a.js"), {"overrides": [{"root": "x"}]})


class TestValidation:
    """Tests for option type checks."""

    def test_bad_loglevel(self, tmp_path):
        """Test that unknown log levels are rejected."""
        with pytest.raises(ConfigError, match="loglevel"):
            normalize_options(str(tmp_path / "a.js"), {"loglevel": "loud"})

    def test_bad_extensions(self, tmp_path):
        """Test that extensions must be strings."""
        with pytest.raises(ConfigError, match="extensions"):
            normalize_options(str(tmp_path / "a.js"), {"extensions": [1, 2]})

    def test_bad_options_type(self, tmp_path):
        """Test that options must be a mapping."""
        with pytest.raises(ConfigError):
            normalize_options(str(tmp_path / "a.js"), ["root"])

    def test_third_party_target_must_be_string(self, tmp_path):
        """Test that third-party targets are literal paths."""
        with pytest.raises(ConfigError):
            normalize_options(
                str(tmp_path / "a.js"),
                {"third_party": {"module": "m", "alias": {"w": lambda m: "x"}}},
            )

    def test_to_dict(self, tmp_path):
        """Test the JSON-friendly view."""
        opts = normalize_options(
            str(tmp_path / "a.js"),
            {"cwd": str(tmp_path), "alias": {"@": "./src"}, "third_party": {"module": "m", "alias": {"w": "x"}}},
        )
        data = opts.to_dict()
        assert data["alias"] == [{"pattern": "^@(/.*|)$"}]
        assert data["third_party"] == {"module": "m", "alias": [{"pattern": "^w(/.*|)$", "file_path": "x"}]}
