"""Build the RBAC registry from the identity config.

The identity config is a YAML document stored under ``identity.yaml`` in the
``kotsadm-identity-config`` ConfigMap (or a local file in development)::

    apiVersion: kots.io/v1beta1
    kind: IdentityConfig
    spec:
      enableAdvancedRBAC: true
      restrictedGroups: []
      rbac:
        policies: [...]
        roles: [...]
        groups: [...]

With advanced RBAC enabled the document's policies and roles are added to
the built-in catalog and its groups replace the default groups. Otherwise
only ``restrictedGroups`` is honoured.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from kotsadm.rbac.errors import RBACConfigurationError
from kotsadm.rbac.registry import (RBACRegistry, default_groups,
                                   default_policies, default_roles,
                                   restricted_groups_to_rbac_groups)
from kotsadm.rbac.types import Group, Role, policy_from_dict

logger = logging.getLogger(__name__)


def parse_identity_config(contents: str) -> Dict[str, Any]:
    """Parse an identity config document."""
    try:
        document = yaml.safe_load(contents) or {}
    except yaml.YAMLError as e:
        raise RBACConfigurationError(f"failed to decode identity config: {e}")

    if not isinstance(document, dict):
        raise RBACConfigurationError("identity config must be a mapping")

    return document


def registry_from_identity_config(document: Optional[Dict[str, Any]]) -> RBACRegistry:
    """Build a registry from a parsed identity config, falling back to defaults."""
    spec = (document or {}).get("spec") or {}

    policies = default_policies()
    roles = default_roles()
    groups = default_groups()

    if spec.get("enableAdvancedRBAC"):
        rbac = spec.get("rbac") or {}
        try:
            policies += [policy_from_dict(p) for p in rbac.get("policies") or []]
            roles += [Role.from_dict(r) for r in rbac.get("roles") or []]
            groups = [Group.from_dict(g) for g in rbac.get("groups") or []]
        except (KeyError, TypeError, AttributeError) as e:
            raise RBACConfigurationError(f"invalid rbac section in identity config: {e}")
        logger.info("Advanced RBAC enabled from identity config")
    elif spec.get("restrictedGroups"):
        groups = restricted_groups_to_rbac_groups(spec["restrictedGroups"])
        logger.info(f"Restricting access to groups: {spec['restrictedGroups']}")

    return RBACRegistry(policies=policies, roles=roles, groups=groups)


def load_identity_config_file(path: str) -> Dict[str, Any]:
    """Read an identity config document from disk."""
    try:
        contents = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise RBACConfigurationError(f"failed to read identity config {path}: {e}")
    return parse_identity_config(contents)


def get_core_v1_api() -> client.CoreV1Api:
    """Kubernetes API client, in-cluster first, then kubeconfig."""
    try:
        config.load_incluster_config()
        logger.info("Kubernetes client initialized (in-cluster)")
    except config.ConfigException:
        try:
            config.load_kube_config()
            logger.info("Kubernetes client initialized (kubeconfig)")
        except config.ConfigException as e:
            raise RBACConfigurationError(f"Kubernetes client unavailable: {e}")
    return client.CoreV1Api()


def load_identity_config_from_configmap(
    namespace: str,
    name: str,
    key: str = "identity.yaml",
    api: Optional[client.CoreV1Api] = None,
) -> Optional[Dict[str, Any]]:
    """Read the identity config from a ConfigMap. Returns None if it does not exist."""
    api = api or get_core_v1_api()

    try:
        config_map = api.read_namespaced_config_map(name=name, namespace=namespace)
    except ApiException as e:
        if e.status == 404:
            logger.info(f"ConfigMap {namespace}/{name} not found, using default RBAC")
            return None
        raise RBACConfigurationError(
            f"failed to get config map {namespace}/{name}: {e.reason}"
        )

    data = config_map.data or {}
    return parse_identity_config(data.get(key, ""))


def build_registry(settings, api: Optional[client.CoreV1Api] = None) -> RBACRegistry:
    """Construct the process-wide registry according to settings."""
    source = settings.identity_config_source

    if source == "configmap":
        document = load_identity_config_from_configmap(
            settings.kotsadm_namespace,
            settings.identity_configmap_name,
            settings.identity_configmap_key,
            api=api,
        )
    elif source == "file":
        if not settings.identity_config_path:
            raise RBACConfigurationError(
                "IDENTITY_CONFIG_PATH is required when IDENTITY_CONFIG_SOURCE=file"
            )
        document = load_identity_config_file(settings.identity_config_path)
    else:
        document = None

    return registry_from_identity_config(document)
