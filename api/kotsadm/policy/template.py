"""Resource templates.

A template is a resource pattern with ``{{.name}}`` placeholders, for example
``app.{{.appSlug}}.backup.``. Placeholders are filled from the request's path
variables first; when a variable is missing, the template's getters are
asked in order to derive it from other variables through a store lookup.
Resolution fails closed: a placeholder nobody can fill is an error, never an
empty or wildcard segment.
"""

import re
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from kotsadm.rbac.errors import RBACConfigurationError, ResolutionError
from kotsadm.rbac.patterns import validate_pattern
from kotsadm.repositories.redis_base import StoreError
from kotsadm.repositories.store import Store

VarGetter = Callable[[Store, Mapping[str, str]], Dict[str, str]]

_PLACEHOLDER = re.compile(r"\{\{\s*\.(\w+)\s*\}\}")

# Values are single segments; delimiters or wildcards would re-shape the path.
_UNSAFE_VALUE = re.compile(r"[./*]")


def app_slug_from_app_id(store: Store, request_vars: Mapping[str, str]) -> Dict[str, str]:
    """Resolve ``appSlug`` from an ``appId`` path variable."""
    app_id = request_vars.get("appId")
    if not app_id:
        return {}

    app = store.get_app(app_id)
    return {"appSlug": app.slug}


def app_slug_from_support_bundle(
    store: Store, request_vars: Mapping[str, str]
) -> Dict[str, str]:
    """Resolve ``appSlug`` from a ``bundleId`` or ``bundleSlug`` path variable."""
    bundle_id = request_vars.get("bundleId") or request_vars.get("bundleSlug")
    if not bundle_id:
        return {}

    bundle = store.get_support_bundle(bundle_id)
    app = store.get_app(bundle.app_id)
    return {"appSlug": app.slug}


class ResourceTemplate:
    """A validated resource template."""

    def __init__(self, template: str):
        self.template = template
        self.placeholders = tuple(dict.fromkeys(_PLACEHOLDER.findall(template)))

        leftover = _PLACEHOLDER.sub("", template)
        if "{{" in leftover or "}}" in leftover:
            raise RBACConfigurationError(f"malformed placeholder in {template!r}")

        try:
            validate_pattern(_PLACEHOLDER.sub("x", template))
        except RBACConfigurationError as e:
            raise RBACConfigurationError(f"invalid resource template: {e}")

    def __repr__(self) -> str:
        return f"ResourceTemplate({self.template!r})"

    def render(self, values: Mapping[str, str]) -> str:
        """Substitute every placeholder. All values must be present."""
        return _PLACEHOLDER.sub(lambda m: values[m.group(1)], self.template)

    def resolve(
        self,
        request_vars: Mapping[str, str],
        getters: Sequence[VarGetter] = (),
        store: Optional[Store] = None,
    ) -> str:
        """Render the template for a request."""
        values = {}
        getter_results: List[Dict[str, str]] = []

        for name in self.placeholders:
            value = request_vars.get(name)
            if not value:
                value = _from_getters(name, request_vars, getters, store, getter_results)

            if not value:
                raise ResolutionError(
                    f"unable to resolve {name} for resource {self.template}"
                )
            if _UNSAFE_VALUE.search(value):
                raise ResolutionError(f"invalid value {value!r} for {name}")

            values[name] = value

        return self.render(values)


def _from_getters(
    name: str,
    request_vars: Mapping[str, str],
    getters: Sequence[VarGetter],
    store: Optional[Store],
    results: List[Dict[str, str]],
) -> str:
    """First non-empty value for ``name`` from the getters, in order.

    Getter results are memoized in ``results`` so each getter runs at most
    once per resolution.
    """
    for index, getter in enumerate(getters):
        if index == len(results):
            if store is None:
                raise ResolutionError(f"no store available to resolve {name}")
            try:
                results.append(getter(store, request_vars))
            except StoreError as e:
                raise ResolutionError(
                    f"failed to resolve {name} with {getter.__name__}: {e}"
                ) from e

        value = results[index].get(name)
        if value:
            return value

    return ""


def resolve(
    template: str,
    request_vars: Mapping[str, str],
    getters: Sequence[VarGetter] = (),
    store: Optional[Store] = None,
) -> str:
    """Resolve a template string against request variables."""
    return ResourceTemplate(template).resolve(request_vars, getters, store)
