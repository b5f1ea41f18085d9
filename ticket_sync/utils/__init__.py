"""Utility modules for the ticket sync."""

from .config import config, Config, load_config

__all__ = ['config', 'Config', 'load_config']
