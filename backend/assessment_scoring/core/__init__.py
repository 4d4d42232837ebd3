"""
Core module for configuration, errors, logging and transaction helpers.
"""
from .config import settings

__all__ = ["settings"]
