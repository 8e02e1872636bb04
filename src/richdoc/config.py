"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    app_name:        str = "richdoc"
    max_depth:       int = Field(default=64, ge=1, description="Max node nesting depth accepted by parse")
    slug_max_length: int = Field(default=80, ge=1, description="Max length of generated heading anchor ids")
    image_class:     str = Field(default="my-6 overflow-hidden rounded-xl border bg-slate-50", description="CSS class applied to <img>")
    rule_class:      str = Field(default="my-6 border-t border-slate-200", description="CSS class applied to <hr>")
    link_rel:        str = Field(default="noopener noreferrer nofollow", description="rel attribute applied to links")
    empty_message:   str = Field(default="Content could not be loaded.", description="Shown in place of an unrenderable body")
    output_dir:      str = Field(default="dist", description="Directory for rendered HTML and imported JSON")
    log_level:       str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then RICHDOC_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"RICHDOC_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
