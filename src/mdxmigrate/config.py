"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "MDXMIGRATE_"


class Settings(BaseModel):
    db_url:              str = "sqlite:///mdxmigrate.db"
    collection:          str = Field(default="providers",             description="Target collection for migrated documents")
    registry_collection: str = Field(default="richTextDataInstances", description="Collection holding reusable data entries")
    extension:           str = Field(default=".mdx",                  description="Source file extension")
    parser_config:       str = Field(default="gfm-like",              description="MarkdownIt parser preset name")
    components_file: Optional[str] = Field(default=None, description="YAML component table; built-in table when unset")
    on_unresolved:       str = Field(default="placeholder", pattern="^(placeholder|fail)$")
    page_size:           int = Field(default=100,   ge=1, description="Page size for store reads")
    max_pages:           int = Field(default=10000, ge=1, description="Upper bound on page-loop iterations")
    workers:             int = Field(default=1,     ge=1, description="Files transformed concurrently per chunk")
    chunk_size:          int = Field(default=25,    ge=1, description="Files per chunk between barriers")
    file_timeout:      float = Field(default=30.0,  gt=0, description="Seconds before a file is demoted to failed")
    store_timeout:     float = Field(default=10.0,  gt=0, description="Seconds to wait on a store connection")
    expected_count:      int = Field(default=0,     ge=0, description="Expected stored records; 0 = discovered files")
    sample_size:         int = Field(default=10,    ge=0, description="Records deep-checked by verification")
    sample_seed:         int = 0
    report_path:         str = Field(default="migration-report.json", description="Run report output path")
    log_level:           str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR)$")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDXMIGRATE_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
