"""Unit tests for the access policy catalog."""

import dataclasses

import pytest

from kotsadm.policy import catalog
from kotsadm.policy.catalog import AccessPolicy, new_policy
from kotsadm.policy.template import (app_slug_from_app_id,
                                     app_slug_from_support_bundle)
from kotsadm.rbac.engine import RBACEngine
from kotsadm.rbac.errors import RBACConfigurationError, ResolutionError
from kotsadm.rbac.registry import SUPPORT_ROLE_ID, default_registry


def catalog_entries():
    return {
        name: value
        for name, value in vars(catalog).items()
        if isinstance(value, AccessPolicy)
    }


@pytest.mark.unit
class TestCatalog:
    """Test the static catalog entries."""

    def test_entries_are_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            catalog.AppRead.action = "write"

    @pytest.mark.parametrize("name", sorted(catalog_entries()))
    def test_app_entries_have_getters(self, name):
        policy = catalog_entries()[name]

        if "{{.appSlug}}" in policy.resource:
            assert app_slug_from_app_id in policy.getters
        else:
            assert policy.getters == ()

    def test_global_entry(self):
        assert catalog.ClusterRead.execute({}) == ("read", "cluster.")

    def test_app_entry_from_path(self):
        assert catalog.AppBackupRead.execute({"appSlug": "my-app"}) == (
            "read",
            "app.my-app.backup.",
        )

    def test_app_entry_from_app_id(self, populated_store):
        assert catalog.AppRestoreWrite.execute({"appId": "app-1"}, populated_store) == (
            "write",
            "app.my-app.restore.",
        )

    def test_support_bundle_entry_getter_order(self):
        assert catalog.AppSupportbundleRead.getters == (
            app_slug_from_app_id,
            app_slug_from_support_bundle,
        )

    def test_support_bundle_entry_from_bundle_slug(self, populated_store):
        assert catalog.AppSupportbundleWrite.execute(
            {"bundleSlug": "other-bundle"}, populated_store
        ) == ("write", "app.other-app.supportbundle.")

    def test_unresolvable_entry(self, populated_store):
        with pytest.raises(ResolutionError):
            catalog.AppLicenseRead.execute({}, populated_store)

    def test_malformed_entry_rejected_at_construction(self):
        with pytest.raises(RBACConfigurationError):
            new_policy("read", "app..{{.appSlug}}.")


@pytest.mark.unit
@pytest.mark.rbac
class TestCatalogDecisions:
    """End-to-end decisions for catalog entries."""

    @pytest.fixture
    def engine(self):
        return RBACEngine(default_registry())

    def test_backup_read_resolved_and_allowed(self, engine):
        action, resource = catalog.AppBackupRead.execute({"appSlug": "foo"})

        assert resource == "app.foo.backup."
        assert engine.authorize([SUPPORT_ROLE_ID], action, resource)

    def test_filetree_denied_for_support(self, engine):
        action, resource = catalog.AppDownstreamFiletreeRead.execute(
            {"appSlug": "foo"}
        )

        assert not engine.authorize([SUPPORT_ROLE_ID], action, resource)
