"""Tests for kiln configuration."""

import tempfile
import tomllib
from pathlib import Path

import pytest

from kiln.config import KilnConfig, MinifyConfig, get_default_config_toml


class TestKilnConfig:
    """Test configuration loading and defaults."""

    def test_default_config(self):
        """Test that default config loads without errors."""
        config = KilnConfig()
        assert config.version == "1.0"
        assert config.output.encoding == "utf-8"

    def test_minify_defaults(self):
        """Test minify default values."""
        config = KilnConfig()
        assert config.minify.mangle is True
        assert config.minify.mangle_toplevel is False
        assert config.minify.beautify is False
        assert config.minify.drop_semicolons is False

    def test_resolver_defaults(self):
        """Test resolver default values."""
        config = KilnConfig()
        assert config.resolver.roots == []
        assert config.resolver.aliases == {}
        assert config.resolver.text_plugin_pattern == "^text!"

    def test_minify_options_frozen(self):
        """Minify options cannot change between invocations."""
        options = MinifyConfig()
        with pytest.raises(Exception):
            options.beautify = True

    def test_load_from_toml(self):
        """Test loading config from TOML file."""
        toml_content = """
[kiln]
version = "1.0"

[minify]
mangle = false

[resolver]
roots = ["lib", "vendor"]

[resolver.aliases]
jquery = "third_party/jquery"
"""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
            f.write(toml_content)
            f.flush()

            config = KilnConfig.load(Path(f.name))
            assert config.minify.mangle is False
            assert config.resolver.roots == ["lib", "vendor"]
            assert config.resolver.aliases == {"jquery": "third_party/jquery"}

    def test_load_from_cwd(self, tmp_path, monkeypatch):
        """Test .kilnrc.toml in the working directory is picked up."""
        (tmp_path / ".kilnrc.toml").write_text('[output]\nencoding = "latin-1"\n')
        monkeypatch.chdir(tmp_path)
        config = KilnConfig.load()
        assert config.output.encoding == "latin-1"

    def test_default_config_toml_is_valid(self):
        """Test that default config TOML can be parsed."""
        toml_content = get_default_config_toml()
        assert "[minify]" in toml_content
        assert "[resolver]" in toml_content

        data = tomllib.loads(toml_content)
        config = KilnConfig(**data)
        assert config.minify == MinifyConfig()
        assert config.resolver.roots == []

    def test_default_config_toml_with_roots(self):
        """Roots and aliases given to init are written as valid TOML."""
        toml_content = get_default_config_toml(
            ["lib", 'odd "dir"\\x'], {"jquery": "third_party/jquery"}
        )
        config = KilnConfig(**tomllib.loads(toml_content))
        assert config.resolver.roots == ["lib", 'odd "dir"\\x']
        assert config.resolver.aliases == {"jquery": "third_party/jquery"}

    def test_env_override_of_underscored_fields(self, monkeypatch):
        """Nested fields whose names contain underscores are reachable from env."""
        monkeypatch.setenv("KILN_MINIFY__MANGLE_TOPLEVEL", "true")
        monkeypatch.setenv("KILN_MINIFY__DROP_SEMICOLONS", "true")
        monkeypatch.setenv("KILN_RESOLVER__TEXT_PLUGIN_PATTERN", "^tpl!")
        monkeypatch.setenv("KILN_OUTPUT__ENCODING", "latin-1")

        config = KilnConfig()

        assert config.minify.mangle_toplevel is True
        assert config.minify.drop_semicolons is True
        assert config.minify.mangle is True
        assert config.resolver.text_plugin_pattern == "^tpl!"
        assert config.output.encoding == "latin-1"

