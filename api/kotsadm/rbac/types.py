"""Policy, role and group types for the authorization engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Tuple, Union

from kotsadm.rbac.errors import RBACConfigurationError
from kotsadm.rbac.patterns import DEEP_WILDCARD

WILDCARD_GROUP = "*"


class Effect(str, Enum):
    """Rule effects."""

    ALLOW = "allow"
    DENY = "deny"


class Decision(str, Enum):
    """Authorization decisions."""

    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True)
class PatternListPolicy:
    """Allowed and denied resource patterns for a resource family.

    ``actions`` are action patterns the lists apply to; the default applies
    them to every action.
    """

    id: str
    name: str = ""
    allowed: Tuple[str, ...] = ()
    denied: Tuple[str, ...] = ()
    actions: Tuple[str, ...] = (DEEP_WILDCARD,)

    @property
    def action_patterns(self) -> Tuple[str, ...]:
        return self.actions

    def patterns(self, effect: Effect) -> Tuple[str, ...]:
        return self.allowed if effect == Effect.ALLOW else self.denied

    def all_patterns(self) -> Iterator[str]:
        yield from self.actions
        yield from self.allowed
        yield from self.denied

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatternListPolicy":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            allowed=tuple(data.get("allowed", [])),
            denied=tuple(data.get("denied", [])),
            actions=tuple(data.get("actions", [DEEP_WILDCARD])),
        )


@dataclass(frozen=True)
class RulePolicy:
    """A single action and resource pattern pair with an effect."""

    id: str
    action: str
    resource: str
    name: str = ""
    effect: Effect = Effect.ALLOW

    @property
    def action_patterns(self) -> Tuple[str, ...]:
        return (self.action,)

    def patterns(self, effect: Effect) -> Tuple[str, ...]:
        return (self.resource,) if effect == self.effect else ()

    def all_patterns(self) -> Iterator[str]:
        yield self.action
        yield self.resource

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RulePolicy":
        try:
            effect = Effect(data.get("effect", Effect.ALLOW.value).lower())
        except ValueError:
            raise RBACConfigurationError(
                f"policy {data.get('id')!r} has unknown effect {data.get('effect')!r}"
            )

        return cls(
            id=data["id"],
            name=data.get("name", ""),
            action=data["action"],
            resource=data["resource"],
            effect=effect,
        )


Policy = Union[PatternListPolicy, RulePolicy]


def policy_from_dict(data: Dict[str, Any]) -> Policy:
    """Build whichever policy shape the document describes."""
    if "id" not in data:
        raise RBACConfigurationError(f"policy is missing an id: {data!r}")

    if "allowed" in data or "denied" in data:
        return PatternListPolicy.from_dict(data)

    if "action" in data and "resource" in data:
        return RulePolicy.from_dict(data)

    raise RBACConfigurationError(
        f"policy {data['id']!r} needs either allowed/denied lists or an action and resource"
    )


@dataclass(frozen=True)
class Role:
    """Named set of policies assignable to a session."""

    id: str
    name: str = ""
    description: str = ""
    policies: Tuple[Policy, ...] = ()
    policy_ids: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Role":
        if "id" not in data:
            raise RBACConfigurationError(f"role is missing an id: {data!r}")

        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description", ""),
            policies=tuple(policy_from_dict(p) for p in data.get("policies", [])),
            policy_ids=tuple(data.get("policyIds", [])),
        )


@dataclass(frozen=True)
class Group:
    """Maps a principal group (or ``*`` for everyone) to role IDs."""

    id: str
    role_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_wildcard(self) -> bool:
        return self.id == WILDCARD_GROUP

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Group":
        if "id" not in data:
            raise RBACConfigurationError(f"group is missing an id: {data!r}")
        return cls(id=data["id"], role_ids=tuple(data.get("roleIds", [])))


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of a single authorization check."""

    decision: Decision
    action: str
    resource: str
    allow_pattern: str = ""
    deny_pattern: str = ""
    reason: str = ""

    @property
    def allowed(self) -> bool:
        return self.decision == Decision.ALLOW

    @property
    def denied(self) -> bool:
        return self.decision == Decision.DENY


def role_summaries(roles: List[Role]) -> List[Dict[str, str]]:
    """Public view of roles, without their policies."""
    return [
        {"id": role.id, "name": role.name, "description": role.description}
        for role in roles
    ]
