"""Configuration module for the classroom accounts service."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
