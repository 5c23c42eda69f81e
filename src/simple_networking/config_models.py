"""
Pydantic models for client configuration.
Lets a Client be built from a dict or a YAML file with clear validation errors.
"""

from __future__ import annotations
from typing import Dict
from pydantic import BaseModel, Field, ValidationError, field_validator

from simple_networking import __version__


class ClientConfig(BaseModel):
    """Configuration for a Client and its default transport."""
    base_url: str = Field(..., description="Absolute URL request paths are appended to")
    default_headers: Dict[str, str] = Field(default_factory=dict, description="Headers sent with every request")
    max_retries: int = Field(3, ge=0, le=100, description="Retry budget per request")
    timeout_s: float = Field(30.0, gt=0, le=600, description="Transport timeout in seconds")
    max_workers: int = Field(4, ge=1, le=64, description="Transport worker threads")
    user_agent: str = Field(f"simple-networking/{__version__}", description="Default User-Agent header")

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v):
        if not v.startswith(('http://', 'https://')):
            raise ValueError('base_url must be a valid HTTP/HTTPS URL')
        return v

    @field_validator('user_agent')
    @classmethod
    def validate_user_agent(cls, v):
        if not v.strip():
            raise ValueError('user_agent cannot be empty')
        return v


def load_client_config(config_path: str) -> ClientConfig:
    """
    Load and validate a client configuration from YAML file.

    The file may hold the settings at the top level or under a ``client`` key.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Validated ClientConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If YAML is malformed or the configuration is invalid
    """
    import yaml

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            raw_config = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}")

    if not isinstance(raw_config, dict):
        raise ValueError(f"Configuration in {config_path} must be a mapping")
    if isinstance(raw_config.get('client'), dict):
        raw_config = raw_config['client']

    try:
        return ClientConfig(**raw_config)
    except ValidationError as e:
        error_messages = []
        for error in e.errors():
            field_path = '.'.join(str(loc) for loc in error['loc'])
            error_messages.append(f"  {field_path}: {error['msg']}")

        raise ValueError(
            f"Configuration validation failed for {config_path}:\n" +
            '\n'.join(error_messages)
        ) from e
