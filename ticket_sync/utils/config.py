"""Configuration management for the mail-to-list ticket sync."""

import os
from pathlib import Path
from typing import Any, List, Optional

import yaml
from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, Field


class GraphConfig(BaseModel):
    base_url: str = "https://graph.microsoft.com/v1.0"
    timeout: int = 30
    unread_limit: int = 20


class AuthConfig(BaseModel):
    # Tokens are opaque; acquiring and refreshing them happens elsewhere.
    mail_token: Optional[str] = None
    sites_token: Optional[str] = None
    client_id: Optional[str] = None
    authority: str = "https://login.microsoftonline.com/common"
    scopes: List[str] = Field(
        default=[
            "https://graph.microsoft.com/Mail.ReadWrite",
            "https://graph.microsoft.com/Sites.ReadWrite.All",
        ]
    )


class StorageConfig(BaseModel):
    mapping_store_path: str = "data/field_mappings.json"


class SyncConfig(BaseModel):
    restore_last_selection: bool = True


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}"
    file: Optional[str] = "logs/ticket_sync_{time}.log"
    rotation: str = "10 MB"
    retention: str = "10 days"


class Config(BaseModel):
    graph: GraphConfig = Field(default_factory=GraphConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from YAML file with environment variable substitution.

    The path is resolved from the argument, then ``TICKET_SYNC_CONFIG``, then
    ``config/config.yaml`` at the repository root. A missing default file
    yields the built-in defaults; an explicitly named file must exist.
    """

    load_dotenv()

    explicit = config_path or os.getenv("TICKET_SYNC_CONFIG")
    if explicit:
        path = Path(explicit)
    else:
        path = Path(__file__).parent.parent.parent / "config" / "config.yaml"
        if not path.exists():
            logger.warning(f"No config file at {path}, using defaults")
            return Config()

    with open(path, "r") as f:
        config_data = yaml.safe_load(f) or {}

    config_data = _substitute_env_vars(config_data)

    return Config(**config_data)


def _substitute_env_vars(obj: Any) -> Any:
    """Recursively substitute ${VAR_NAME:default} patterns with environment variables."""
    if isinstance(obj, dict):
        return {key: _substitute_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_substitute_env_vars(item) for item in obj]
    elif isinstance(obj, str) and obj.startswith("${") and obj.endswith("}"):
        var_spec = obj[2:-1]
        if ":" in var_spec:
            var_name, default_value = var_spec.split(":", 1)
        else:
            var_name, default_value = var_spec, None

        return os.getenv(var_name, default_value)
    else:
        return obj


# Global config instance
config = load_config()
