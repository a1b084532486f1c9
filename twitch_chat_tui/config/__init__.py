"""Configuration package exports."""

from .loader import load_config
from .model import ChatConfig

__all__ = ["ChatConfig", "load_config"]
