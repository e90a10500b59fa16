"""Resource pattern language.

Patterns and resources are strings of segments separated by ``.`` or ``/``
(``app.my-app.backup.read``, ``a/b/c``). Two wildcards are understood when
they make up a whole segment:

* ``*`` matches exactly one segment.
* ``**`` matches zero or more segments.

A trailing delimiter produces a final empty segment, which is compared like
any other segment. ``app.my-app.`` therefore matches ``app.*.`` and
``app.my-app.**`` but not ``app.my-app``.
"""

import re
from functools import lru_cache
from typing import List

from kotsadm.rbac.errors import RBACConfigurationError

WILDCARD = "*"
DEEP_WILDCARD = "**"

_DELIMITERS = re.compile(r"[./]")
_DELIMITERS_KEPT = re.compile(r"([./])")


def split_segments(value: str) -> List[str]:
    """Split a pattern or resource into its segments."""
    return _DELIMITERS.split(value)


def matches(pattern: str, resource: str) -> bool:
    """Check whether ``pattern`` matches ``resource``.

    ``**`` only ever looks one segment ahead: when the segment after it
    equals the current resource segment, both are consumed together,
    otherwise ``**`` swallows the resource segment. There is no backtracking,
    so ``**/a/b`` does not match ``a/a/b``. Use :func:`matches_strict` for
    full backtracking.
    """
    if not pattern or not resource:
        return False

    if pattern == resource:
        return True

    parts = split_segments(pattern)
    if parts == [DEEP_WILDCARD] or parts == [DEEP_WILDCARD, WILDCARD]:
        return True

    segments = split_segments(resource)
    p = r = 0

    while p < len(parts) and r < len(segments):
        part = parts[p]
        if part == DEEP_WILDCARD:
            if p == len(parts) - 1:
                return True
            if parts[p + 1] == segments[r]:
                p += 2
            r += 1
        elif part == WILDCARD or part == segments[r]:
            p += 1
            r += 1
        else:
            return False

    # a trailing ** also matches the empty tail
    if p == len(parts) - 1 and parts[p] == DEEP_WILDCARD:
        return True

    return p == len(parts) and r == len(segments)


def matches_strict(pattern: str, resource: str) -> bool:
    """Backtracking variant of :func:`matches`.

    Every ``**`` may consume any number of segments, so anchors that recur
    later in the resource are found. Only used when strict matching is
    switched on in settings.
    """
    if not pattern or not resource:
        return False

    parts = split_segments(pattern)
    segments = split_segments(resource)

    @lru_cache(maxsize=None)
    def walk(p: int, r: int) -> bool:
        if p == len(parts):
            return r == len(segments)

        part = parts[p]
        if part == DEEP_WILDCARD:
            return any(walk(p + 1, k) for k in range(r, len(segments) + 1))

        if r == len(segments):
            return False

        if part == WILDCARD or part == segments[r]:
            return walk(p + 1, r + 1)

        return False

    return walk(0, 0)


def simplify(pattern: str) -> str:
    """Collapse ``**`` followed by a lone ``*`` into ``**``.

    >>> simplify("a/**/*/delete")
    'a/**/delete'
    """
    tokens = _DELIMITERS_KEPT.split(pattern)
    simplified = [tokens[0]]
    previous = tokens[0]

    for i in range(1, len(tokens), 2):
        delimiter, segment = tokens[i], tokens[i + 1]
        # only the one `*` directly after a `**` is redundant
        if segment == WILDCARD and previous == DEEP_WILDCARD:
            previous = None
            continue
        simplified.extend((delimiter, segment))
        previous = segment

    return "".join(simplified)


def more_specific(previous: str, candidate: str) -> bool:
    """Return True if ``candidate`` is narrower than ``previous``.

    The rules are applied in order and the first one that applies decides.
    This is not a total order; it is only used to keep a running "most
    specific match so far".
    """
    if previous == "":
        return True
    if previous == DEEP_WILDCARD:
        return True
    if candidate == DEEP_WILDCARD:
        return False

    previous_parts = split_segments(previous)
    candidate_parts = split_segments(candidate)

    if DEEP_WILDCARD in previous_parts and DEEP_WILDCARD not in candidate_parts:
        return True

    if previous_parts.count(WILDCARD) > candidate_parts.count(WILDCARD):
        return True

    return len(candidate_parts) > len(previous_parts)


def validate_pattern(pattern: str) -> str:
    """Reject patterns that would produce empty segments.

    Only the last segment may be empty (a trailing delimiter).
    """
    if not pattern:
        raise RBACConfigurationError("pattern must not be empty")

    segments = split_segments(pattern)
    if any(segment == "" for segment in segments[:-1]):
        raise RBACConfigurationError(f"pattern {pattern!r} has an empty segment")

    return pattern
