"""Authorization engine: pattern language, registry and decisions."""

from .engine import (EvaluationMode, RBACEngine, authorize_policies,
                     create_rbac_engine)
from .errors import RBACConfigurationError, RBACError, ResolutionError
from .patterns import matches, matches_strict, more_specific, simplify
from .registry import (CLUSTER_ADMIN_ROLE, CLUSTER_ADMIN_ROLE_ID, SUPPORT_ROLE,
                       SUPPORT_ROLE_ID, RBACRegistry, default_registry)
from .types import (AccessDecision, Decision, Effect, Group, PatternListPolicy,
                    Policy, Role, RulePolicy)

__all__ = [
    # Engine
    "RBACEngine",
    "EvaluationMode",
    "authorize_policies",
    "create_rbac_engine",
    # Patterns
    "matches",
    "matches_strict",
    "simplify",
    "more_specific",
    # Registry
    "RBACRegistry",
    "default_registry",
    "CLUSTER_ADMIN_ROLE",
    "CLUSTER_ADMIN_ROLE_ID",
    "SUPPORT_ROLE",
    "SUPPORT_ROLE_ID",
    # Types
    "AccessDecision",
    "Decision",
    "Effect",
    "Group",
    "PatternListPolicy",
    "Policy",
    "Role",
    "RulePolicy",
    # Errors
    "RBACError",
    "RBACConfigurationError",
    "ResolutionError",
]
