"""Policy, role and group registry.

The registry is built once at process start and never mutated. It is
attached to the application state and handed to the engine, so concurrent
requests read it without locking.
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional, Sequence

from kotsadm.rbac.errors import RBACConfigurationError
from kotsadm.rbac.patterns import DEEP_WILDCARD, validate_pattern
from kotsadm.rbac.types import (WILDCARD_GROUP, Effect, Group, Policy,
                                PatternListPolicy, Role, RulePolicy)

logger = logging.getLogger(__name__)

CLUSTER_ADMIN_ROLE_ID = "cluster-admin"
SUPPORT_ROLE_ID = "support"

POLICY_ALLOW_ALL = RulePolicy(
    id="allow-all",
    name="Allow All",
    action=DEEP_WILDCARD,
    resource=DEEP_WILDCARD,
)

CLUSTER_ADMIN_ROLE = Role(
    id=CLUSTER_ADMIN_ROLE_ID,
    name="Cluster Admin",
    description="Read/write access to all resources",
    policies=(POLICY_ALLOW_ALL,),
)

SUPPORT_ROLE = Role(
    id=SUPPORT_ROLE_ID,
    name="Support",
    description="Role for support personnel",
    policies=(
        RulePolicy(id="support-read", action="read", resource=DEEP_WILDCARD),
        RulePolicy(id="support-list", action="list", resource=DEEP_WILDCARD),
        RulePolicy(
            id="support-supportbundle",
            action=DEEP_WILDCARD,
            resource="app.*.supportbundle.**",
        ),
        RulePolicy(
            id="support-deny-filetree",
            action=DEEP_WILDCARD,
            resource="app.*.downstream.filetree.**",
            effect=Effect.DENY,
        ),
    ),
)


def default_policies() -> List[Policy]:
    return [POLICY_ALLOW_ALL]


def default_roles() -> List[Role]:
    return [CLUSTER_ADMIN_ROLE, SUPPORT_ROLE]


def default_groups() -> List[Group]:
    return [Group(id=WILDCARD_GROUP, role_ids=(CLUSTER_ADMIN_ROLE_ID,))]


def restricted_groups_to_rbac_groups(group_names: Iterable[str]) -> List[Group]:
    """Grant cluster-admin to each restricted group, and nothing to anyone else."""
    return [Group(id=name, role_ids=(CLUSTER_ADMIN_ROLE_ID,)) for name in group_names]


class RBACRegistry:
    """Immutable lookup of policies, roles and groups."""

    def __init__(
        self,
        policies: Sequence[Policy] = (),
        roles: Sequence[Role] = (),
        groups: Sequence[Group] = (),
    ):
        self._policies = MappingProxyType(self._index(policies, "policy"))
        self._roles = MappingProxyType(self._index(roles, "role"))
        self._groups = tuple(groups)

        self._validate()

        logger.info(
            f"RBAC registry loaded: {len(self._policies)} policies, "
            f"{len(self._roles)} roles, {len(self._groups)} groups"
        )

    @staticmethod
    def _index(items: Sequence, kind: str) -> Dict[str, object]:
        index = {}
        for item in items:
            if not item.id:
                raise RBACConfigurationError(f"{kind} id must not be empty")
            if item.id in index:
                raise RBACConfigurationError(f"duplicate {kind} id {item.id!r}")
            index[item.id] = item
        return index

    def _validate(self):
        for policy in self._policies.values():
            self._validate_policy(policy)

        for role in self._roles.values():
            for policy in role.policies:
                self._validate_policy(policy)
            for policy_id in role.policy_ids:
                if policy_id not in self._policies:
                    raise RBACConfigurationError(
                        f"role {role.id!r} references unknown policy {policy_id!r}"
                    )

        for group in self._groups:
            for role_id in group.role_ids:
                if role_id not in self._roles:
                    raise RBACConfigurationError(
                        f"group {group.id!r} references unknown role {role_id!r}"
                    )

    @staticmethod
    def _validate_policy(policy: Policy):
        if not isinstance(policy, (PatternListPolicy, RulePolicy)):
            raise RBACConfigurationError(f"unsupported policy type {type(policy)!r}")

        for pattern in policy.all_patterns():
            try:
                validate_pattern(pattern)
            except RBACConfigurationError as e:
                raise RBACConfigurationError(f"policy {policy.id!r}: {e}")

    @property
    def groups(self) -> List[Group]:
        return list(self._groups)

    def get_policy(self, policy_id: str) -> Optional[Policy]:
        return self._policies.get(policy_id)

    def get_role(self, role_id: str) -> Optional[Role]:
        return self._roles.get(role_id)

    def list_roles(self) -> List[Role]:
        return list(self._roles.values())

    def list_policies(self) -> List[Policy]:
        return list(self._policies.values())

    def role_policies(self, role: Role) -> List[Policy]:
        """Inline policies followed by referenced ones."""
        policies = list(role.policies)
        policies.extend(self._policies[policy_id] for policy_id in role.policy_ids)
        return policies

    def resolve_policies(self, role_ids: Iterable[str]) -> List[Policy]:
        """Collect the policies granted by the given roles.

        Unknown role IDs grant nothing.
        """
        policies = []
        seen = set()

        for role_id in role_ids:
            if role_id in seen:
                continue
            seen.add(role_id)

            role = self._roles.get(role_id)
            if role is None:
                logger.warning(f"Session references unknown role {role_id!r}")
                continue

            policies.extend(self.role_policies(role))

        return policies

    def session_roles_for_groups(self, principal_groups: Iterable[str]) -> List[str]:
        """Role IDs a principal receives through group membership."""
        member_of = set(principal_groups)
        role_ids = []

        for group in self._groups:
            if not group.is_wildcard and group.id not in member_of:
                continue
            for role_id in group.role_ids:
                if role_id in self._roles and role_id not in role_ids:
                    role_ids.append(role_id)

        return role_ids


def default_registry() -> RBACRegistry:
    """Registry holding the built-in catalog."""
    return RBACRegistry(
        policies=default_policies(), roles=default_roles(), groups=default_groups()
    )
