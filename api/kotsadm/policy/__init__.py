"""Access policies: resource templates and the route policy catalog."""

from .catalog import AccessPolicy, new_policy
from .template import (ResourceTemplate, VarGetter, app_slug_from_app_id,
                       app_slug_from_support_bundle, resolve)

__all__ = [
    "AccessPolicy",
    "new_policy",
    "ResourceTemplate",
    "VarGetter",
    "resolve",
    "app_slug_from_app_id",
    "app_slug_from_support_bundle",
]
