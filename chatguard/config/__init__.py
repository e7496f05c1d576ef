"""Configuration loading and validation."""

from .settings import ModerationConfig, load_config, validate_config

__all__ = ['ModerationConfig', 'load_config', 'validate_config']
