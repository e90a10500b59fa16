"""Access policy catalog.

Each entry pairs an action with a resource template and the getters that
can fill its placeholders. Routes are protected by naming one of these
entries; adding a new protected resource means adding an entry here.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from kotsadm.policy.template import (ResourceTemplate, VarGetter,
                                     app_slug_from_app_id,
                                     app_slug_from_support_bundle)
from kotsadm.repositories.store import Store


@dataclass(frozen=True)
class AccessPolicy:
    """Action and resource template checked before a handler runs."""

    action: str
    resource: str
    getters: Tuple[VarGetter, ...] = ()
    template: ResourceTemplate = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "template", ResourceTemplate(self.resource))

    def execute(
        self, request_vars: Mapping[str, str], store: Optional[Store] = None
    ) -> Tuple[str, str]:
        """Return the concrete action and resource for a request."""
        return self.action, self.template.resolve(request_vars, self.getters, store)


def new_policy(action: str, resource: str, *getters: VarGetter) -> AccessPolicy:
    return AccessPolicy(action=action, resource=resource, getters=tuple(getters))


def _app_policy(action: str, resource: str) -> AccessPolicy:
    return new_policy(action, resource, app_slug_from_app_id)


ClusterRead = new_policy("read", "cluster.")
ClusterWrite = new_policy("write", "cluster.")

PasswordChange = new_policy("write", "password.")

PrometheussettingsWrite = new_policy("write", "prometheussettings.")

RegistryRead = new_policy("read", "registry.")

IdentityServiceRead = new_policy("read", "identityservice.")
IdentityServiceWrite = new_policy("write", "identityservice.")

SnapshotsettingsRead = new_policy("read", "snapshotsettings.")
SnapshotsettingsWrite = new_policy("write", "snapshotsettings.")

BackupRead = new_policy("read", "backup.")
BackupWrite = new_policy("write", "backup.")

RestoreWrite = new_policy("write", "restore.")

RedactorRead = new_policy("read", "redactor.")
RedactorWrite = new_policy("write", "redactor.")

GitOpsRead = new_policy("read", "gitops.")
GitOpsWrite = new_policy("write", "gitops.")

AppCreate = new_policy("create", "app.")
AppList = new_policy("list", "app.")

AppRead = _app_policy("read", "app.{{.appSlug}}.")
AppUpdate = _app_policy("write", "app.{{.appSlug}}.")

AppStatusRead = _app_policy("read", "app.{{.appSlug}}.status.")

AppDownstreamRead = _app_policy("read", "app.{{.appSlug}}.downstream.")
AppDownstreamWrite = _app_policy("write", "app.{{.appSlug}}.downstream.")

AppDownstreamLogsRead = _app_policy("read", "app.{{.appSlug}}.downstream.logs.")

AppDownstreamPreflightRead = _app_policy(
    "read", "app.{{.appSlug}}.downstream.preflight."
)
AppDownstreamPreflightWrite = _app_policy(
    "write", "app.{{.appSlug}}.downstream.preflight."
)

AppDownstreamConfigRead = _app_policy("read", "app.{{.appSlug}}.downstream.config.")
AppDownstreamConfigWrite = _app_policy("write", "app.{{.appSlug}}.downstream.config.")

AppDownstreamFiletreeRead = _app_policy(
    "read", "app.{{.appSlug}}.downstream.filetree."
)

AppBackupRead = _app_policy("read", "app.{{.appSlug}}.backup.")
AppBackupWrite = _app_policy("write", "app.{{.appSlug}}.backup.")

AppRestoreRead = _app_policy("read", "app.{{.appSlug}}.restore.")
AppRestoreWrite = _app_policy("write", "app.{{.appSlug}}.restore.")

AppSnapshotsettingsRead = _app_policy("read", "app.{{.appSlug}}.snapshotsettings.")
AppSnapshotsettingsWrite = _app_policy("write", "app.{{.appSlug}}.snapshotsettings.")

AppIdentityServiceRead = _app_policy("read", "app.{{.appSlug}}.identityservice.")
AppIdentityServiceWrite = _app_policy("write", "app.{{.appSlug}}.identityservice.")

AppGitopsWrite = _app_policy("write", "app.{{.appSlug}}.gitops.")

AppLicenseRead = _app_policy("read", "app.{{.appSlug}}.license.")
AppLicenseWrite = _app_policy("write", "app.{{.appSlug}}.license.")

AppRegistryRead = _app_policy("read", "app.{{.appSlug}}.registry.")
AppRegistryWrite = _app_policy("write", "app.{{.appSlug}}.registry.")

AppSupportbundleRead = new_policy(
    "read",
    "app.{{.appSlug}}.supportbundle.",
    app_slug_from_app_id,
    app_slug_from_support_bundle,
)
AppSupportbundleWrite = new_policy(
    "write",
    "app.{{.appSlug}}.supportbundle.",
    app_slug_from_app_id,
    app_slug_from_support_bundle,
)
