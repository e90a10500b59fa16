"""Exceptions raised by the authorization engine and its catalogs."""


class RBACError(Exception):
    """Base exception for authorization errors"""


class RBACConfigurationError(RBACError):
    """Malformed policy, role, group or template definition"""


class ResolutionError(RBACError):
    """A resource template could not be resolved for a request"""
