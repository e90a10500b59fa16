"""Access decision engine.

Two evaluation modes are supported:

* ``specificity`` (default): for a resource, the most specific matching
  allow pattern and the most specific matching deny pattern are compared.
  The narrower one wins; identical patterns and the absence of any match
  both resolve to deny.
* ``deny-wins``: any matching deny pattern from any held role vetoes the
  request, regardless of how specific the allows are.

Evaluation is pure: nothing is cached and no state is written.
"""

import logging
from enum import Enum
from typing import Callable, Iterable, List, Sequence, Tuple

from prometheus_client import Counter

from kotsadm.rbac.patterns import matches, matches_strict, more_specific, simplify
from kotsadm.rbac.registry import RBACRegistry
from kotsadm.rbac.types import AccessDecision, Decision, Effect, Policy

logger = logging.getLogger(__name__)

Matcher = Callable[[str, str], bool]

rbac_decisions = Counter(
    "rbac_decisions_total",
    "Total number of authorization decisions",
    ["decision", "mode"],
)


class EvaluationMode(str, Enum):
    """How allow/deny conflicts are resolved."""

    SPECIFICITY = "specificity"
    DENY_WINS = "deny-wins"


def best_match(
    patterns: Iterable[str], resource: str, matcher: Matcher = matches
) -> str:
    """Most specific pattern matching ``resource``, or "" if none match."""
    best = ""
    for pattern in patterns:
        pattern = simplify(pattern)
        if matcher(pattern, resource) and more_specific(best, pattern):
            best = pattern
    return best


def resolve_conflict(best_allow: str, best_deny: str) -> Tuple[Decision, str]:
    """Pick the outcome for the most specific allow and deny matches."""
    if best_deny == "" and best_allow != "":
        return Decision.ALLOW, f"allowed by {best_allow}"

    if best_allow == best_deny:
        if best_allow == "":
            return Decision.DENY, "no matching policy"
        return Decision.DENY, f"{best_deny} is both allowed and denied"

    if more_specific(best_allow, best_deny):
        return Decision.DENY, f"denied by {best_deny}"

    return Decision.ALLOW, f"allowed by {best_allow}"


def _collect(policies: Iterable[Policy], effect: Effect) -> List[str]:
    patterns = []
    for policy in policies:
        patterns.extend(policy.patterns(effect))
    return patterns


def authorize_policies(
    policies: Sequence[Policy], resource: str, matcher: Matcher = matches
) -> bool:
    """Decide access to ``resource`` from the allow and deny lists of ``policies``."""
    best_allow = best_match(_collect(policies, Effect.ALLOW), resource, matcher)
    best_deny = best_match(_collect(policies, Effect.DENY), resource, matcher)

    decision, _ = resolve_conflict(best_allow, best_deny)
    return decision == Decision.ALLOW


class RBACEngine:
    """Authorization engine over a registry of roles and policies."""

    def __init__(
        self,
        registry: RBACRegistry,
        mode: EvaluationMode = EvaluationMode.SPECIFICITY,
        strict_matching: bool = False,
    ):
        self.registry = registry
        self.mode = EvaluationMode(mode)
        self.strict_matching = strict_matching
        self._matcher: Matcher = matches_strict if strict_matching else matches

    def authorize(self, role_ids: Sequence[str], action: str, resource: str) -> bool:
        """Is a session holding ``role_ids`` allowed ``action`` on ``resource``?"""
        return self.check(role_ids, action, resource).allowed

    def check(
        self, role_ids: Sequence[str], action: str, resource: str
    ) -> AccessDecision:
        """Authorize and return the governing patterns along with the decision."""
        policies = [
            policy
            for policy in self.registry.resolve_policies(role_ids)
            if self._applies(policy, action)
        ]

        allow_patterns = _collect(policies, Effect.ALLOW)
        deny_patterns = _collect(policies, Effect.DENY)

        if self.mode == EvaluationMode.DENY_WINS:
            decision = self._deny_wins(action, resource, allow_patterns, deny_patterns)
        else:
            decision = self._most_specific(
                action, resource, allow_patterns, deny_patterns
            )

        rbac_decisions.labels(
            decision=decision.decision.value, mode=self.mode.value
        ).inc()
        logger.debug(
            f"RBAC {decision.decision.value}: action={action} resource={resource} "
            f"roles={list(role_ids)} reason={decision.reason}"
        )

        return decision

    def _applies(self, policy: Policy, action: str) -> bool:
        return any(
            self._matcher(simplify(pattern), action)
            for pattern in policy.action_patterns
        )

    def _most_specific(
        self,
        action: str,
        resource: str,
        allow_patterns: List[str],
        deny_patterns: List[str],
    ) -> AccessDecision:
        best_allow = best_match(allow_patterns, resource, self._matcher)
        best_deny = best_match(deny_patterns, resource, self._matcher)
        decision, reason = resolve_conflict(best_allow, best_deny)

        return AccessDecision(
            decision=decision,
            action=action,
            resource=resource,
            allow_pattern=best_allow,
            deny_pattern=best_deny,
            reason=reason,
        )

    def _deny_wins(
        self,
        action: str,
        resource: str,
        allow_patterns: List[str],
        deny_patterns: List[str],
    ) -> AccessDecision:
        for pattern in deny_patterns:
            pattern = simplify(pattern)
            if self._matcher(pattern, resource):
                return AccessDecision(
                    decision=Decision.DENY,
                    action=action,
                    resource=resource,
                    deny_pattern=pattern,
                    reason=f"denied by {pattern}",
                )

        for pattern in allow_patterns:
            pattern = simplify(pattern)
            if self._matcher(pattern, resource):
                return AccessDecision(
                    decision=Decision.ALLOW,
                    action=action,
                    resource=resource,
                    allow_pattern=pattern,
                    reason=f"allowed by {pattern}",
                )

        return AccessDecision(
            decision=Decision.DENY,
            action=action,
            resource=resource,
            reason="no matching policy",
        )


def create_rbac_engine(
    registry: RBACRegistry,
    mode: EvaluationMode = EvaluationMode.SPECIFICITY,
    strict_matching: bool = False,
) -> RBACEngine:
    """Create RBAC engine instance."""
    return RBACEngine(registry, mode=mode, strict_matching=strict_matching)
