"""API v1 endpoints."""

from . import apps, health, identity, troubleshoot

__all__ = ["apps", "health", "identity", "troubleshoot"]
