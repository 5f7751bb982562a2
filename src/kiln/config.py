"""Configuration models for kiln."""

from __future__ import annotations

import json
import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from kiln.paths import CONFIG_FILE


class MinifyConfig(BaseModel):
    """Options handed to the minify filter on every invocation."""

    model_config = ConfigDict(frozen=True)

    mangle: bool = Field(
        default=True,
        description="Rename local identifiers to short names",
    )
    mangle_toplevel: bool = Field(
        default=False,
        description="Also rename identifiers in the global scope",
    )
    beautify: bool = Field(
        default=False,
        description="Pretty-print instead of compressing whitespace",
    )
    drop_semicolons: bool = Field(
        default=False,
        description="Drop optional semicolons (unsafe squeeze)",
    )


class ResolverConfig(BaseModel):
    """Module resolver configuration."""

    roots: list[str] = Field(
        default_factory=list,
        description="Search roots, in resolution priority order",
    )
    aliases: dict[str, str] = Field(
        default_factory=dict,
        description="Path segment substitutions applied to module specifiers",
    )
    text_plugin_pattern: str = Field(
        default="^text!",
        description="Regex marking a specifier as an opaque text resource",
    )


class OutputConfig(BaseModel):
    """Output configuration."""

    encoding: str = Field(
        default="utf-8",
        description="Encoding used when writing text artifacts",
    )


class KilnConfig(BaseSettings):
    """Main kiln configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KILN_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    version: str = Field(default="1.0", description="Config version")
    minify: MinifyConfig = Field(default_factory=MinifyConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> KilnConfig:
        """Load configuration from file and environment.

        Resolution order (highest to lowest priority):
        1. Environment variables
        2. Provided config file path
        3. .kilnrc.toml in current directory
        4. .kilnrc.toml in home directory
        5. Built-in defaults
        """
        config_data: dict[str, Any] = {}

        locations = []
        if config_path:
            locations.append(config_path)
        locations.extend(
            [
                Path.cwd() / CONFIG_FILE,
                Path.home() / CONFIG_FILE,
            ]
        )

        for loc in locations:
            if loc.exists():
                with open(loc, "rb") as f:
                    config_data = tomllib.load(f)
                break

        return cls(**config_data)


def _toml_string(value: str) -> str:
    # JSON string escapes are valid TOML basic-string escapes
    return json.dumps(value)


def get_default_config_toml(
    roots: Sequence[str] = (),
    aliases: Mapping[str, str] | None = None,
) -> str:
    """Generate .kilnrc.toml content, optionally pre-filled with roots and aliases."""
    resolver = ResolverConfig()
    output = OutputConfig()
    root_list = ", ".join(_toml_string(r) for r in roots)
    if aliases:
        alias_lines = "\n".join(
            f"{_toml_string(k)} = {_toml_string(v)}" for k, v in aliases.items()
        )
    else:
        alias_lines = '# vendor = "third_party/vendor"'

    return f"""# kiln configuration

[kiln]
version = "{KilnConfig.model_fields["version"].default}"

[minify]
mangle = true
mangle_toplevel = false
beautify = false
drop_semicolons = false  # unsafe

[resolver]
roots = [{root_list}]
text_plugin_pattern = {_toml_string(resolver.text_plugin_pattern)}

[resolver.aliases]
{alias_lines}

[output]
encoding = "{output.encoding}"
"""
