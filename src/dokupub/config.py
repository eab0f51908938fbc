"""Renderer configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field


CONFIG_FILE = "config.yaml"

DEFAULT_INTERWIKI = {
    "wp":   "https://en.wikipedia.org/wiki/",
    "doku": "https://www.dokuwiki.org/",
}

# Sections whose body is shown escaped instead of rendered (syntax reference pages).
DEFAULT_LITERAL_SECTIONS = [
    "Links",
    "Tables",
    "Quoting",
    "No Formatting",
    "Embedding HTML and PHP",
    "RSS/ATOM Feed Aggregation",
    "Control Macros",
    "Syntax Plugins",
    "Code Blocks",
    "Downloadable Code Blocks",
]

# Fields whose env var values are parsed as YAML (mappings and sequences).
_STRUCTURED_FIELDS = {"interwiki", "literal_sections"}


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_namespace: str  = Field(default="", description="Namespace relative links resolve against")
    interwiki:         dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_INTERWIKI), description="Interwiki prefix -> base URL")
    html_ok:           bool = Field(default=True,  description="Pass <html> blocks and tags in text through; False renders both escaped")
    typography:        bool = Field(default=True,  description="Arrow, dash, and symbol substitutions")
    pages_base_path:   str  = Field(default="/",   description="Prefix for internal page hrefs")
    media_base_path:   str  = Field(default="/data/media/", description="Prefix for media hrefs")
    use_query_ids:     bool = Field(default=False, description="Build doku.php?id= style hrefs instead of paths")
    use_txt_extension: bool = Field(default=True,  description="Append .txt to path-style page hrefs")
    use_emoji:         bool = Field(default=True,  description="Emoticons as emoji glyphs; False uses smiley images")
    smiley_base_path:  str  = Field(default="/dokuwiki/lib/exe/fetch.php?media=lib:images:smileys:", description="Prefix for smiley image files")
    literal_sections:  list[str] = Field(default_factory=lambda: list(DEFAULT_LITERAL_SECTIONS), description="Section titles rendered escaped")
    output_dir:        str  = Field(default="dist", description="Directory for built HTML + sidecar JSON")
    page_extension:    str  = Field(default=".txt", description="File suffix of wiki page sources")
    log_level:         str  = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then DOKUPUB_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"DOKUPUB_{name.upper()}"):
            if name in _STRUCTURED_FIELDS:
                try:
                    val = yaml.safe_load(val)
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid DOKUPUB_{name.upper()}: {e}") from e
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
