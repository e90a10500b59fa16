"""FastAPI dependencies."""

from .rbac import (RBACContext, check_access, enforce_access, get_rbac_context,
                   get_rbac_engine, get_session, get_store)

__all__ = [
    "RBACContext",
    "check_access",
    "enforce_access",
    "get_rbac_context",
    "get_rbac_engine",
    "get_session",
    "get_store",
]
