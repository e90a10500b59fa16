"""Data models."""

from .app import App, SupportBundle
from .session import Session

__all__ = ["App", "SupportBundle", "Session"]
