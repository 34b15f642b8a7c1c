"""
Tests for PolicyDocumentReconciler.
"""

from unittest.mock import Mock

import pytest

from b2c_ief.exceptions import (
    ConfigurationError,
    DirectoryTransportError,
    OperationCancelledError,
    RemoteError,
    TemplateNotFoundError,
)
from b2c_ief.models.policy_document import PolicyDocument
from b2c_ief.policy.reconciler import PolicyDocumentReconciler

SETTINGS = {
    "TenantName": "contoso",
    "ProxyIdentityExperienceFrameworkAppId": "00000000-1111",
}


@pytest.fixture
def published_document(policy_template):
    return PolicyDocument(file=policy_template, app_settings=SETTINGS, publish=True)


class TestRender:
    """Test cases for PolicyDocumentReconciler.render."""

    def test_render_injects_and_derives_id(self, mock_directory_client, published_document):
        """Test placeholders are replaced and the PolicyId is extracted."""
        reconciler = PolicyDocumentReconciler(mock_directory_client)

        rendered = reconciler.render(published_document)

        assert rendered.id == "B2C_1A_TrustFrameworkBase"
        assert 'TenantId="contoso.onmicrosoft.com"' in rendered.xml
        assert "00000000-1111" in rendered.xml
        assert "{settings:" not in rendered.xml

    def test_custom_template_loader(self, mock_directory_client):
        """Test templates can come from any loader callable."""
        loader = Mock(return_value='<P PolicyId="B2C_1A_{settings:Env}" />')
        reconciler = PolicyDocumentReconciler(mock_directory_client, template_loader=loader)

        rendered = reconciler.render(PolicyDocument(file="in-memory", app_settings={"env": "Dev"}))

        loader.assert_called_once_with("in-memory")
        assert rendered.id == "B2C_1A_Dev"


class TestCreateAndUpdate:
    """Test cases for create/update."""

    def test_create_publishes(self, mock_directory_client, published_document):
        """Test a published policy is PUT under its PolicyId."""
        reconciler = PolicyDocumentReconciler(mock_directory_client)

        state = reconciler.create(published_document)

        mock_directory_client.put_policy.assert_called_once_with(
            "B2C_1A_TrustFrameworkBase", state.xml, cancel_event=None
        )
        assert state.id == "B2C_1A_TrustFrameworkBase"
        assert state.publish is True

    def test_create_unpublished_makes_no_call(self, mock_directory_client, policy_template):
        """Test an unpublished policy is only rendered."""
        reconciler = PolicyDocumentReconciler(mock_directory_client)

        state = reconciler.create(PolicyDocument(file=policy_template, app_settings=SETTINGS))

        mock_directory_client.put_policy.assert_not_called()
        assert state.xml
        assert state.id == "B2C_1A_TrustFrameworkBase"

    def test_update_republishes(self, mock_directory_client, published_document):
        """Test update re-renders and PUTs again."""
        reconciler = PolicyDocumentReconciler(mock_directory_client)
        reconciler.update(published_document)
        mock_directory_client.put_policy.assert_called_once()

    def test_missing_template(self, mock_directory_client, tmp_path):
        """Test a missing template fails before any Graph call."""
        reconciler = PolicyDocumentReconciler(mock_directory_client)
        document = PolicyDocument(file=str(tmp_path / "missing.xml"), publish=True)

        with pytest.raises(TemplateNotFoundError):
            reconciler.create(document)
        mock_directory_client.put_policy.assert_not_called()

    def test_publish_without_policy_id(self, mock_directory_client):
        """Test publishing a document with no PolicyId is refused."""
        reconciler = PolicyDocumentReconciler(
            mock_directory_client, template_loader=lambda path: "<NoId />"
        )
        with pytest.raises(ConfigurationError, match="no PolicyId"):
            reconciler.create(PolicyDocument(file="x.xml", publish=True))
        mock_directory_client.put_policy.assert_not_called()

    def test_upload_rejected(self, mock_directory_client, published_document):
        """Test Graph's rejection surfaces with its response body."""
        mock_directory_client.put_policy.side_effect = RemoteError(
            "Upload policy: Graph returned 400 Bad Request",
            status_code=400,
            response_body="Policy validation failed",
        )
        reconciler = PolicyDocumentReconciler(mock_directory_client)

        with pytest.raises(RemoteError) as exc_info:
            reconciler.create(published_document)
        assert "Policy validation failed" in exc_info.value.detail


class TestRead:
    """Test cases for PolicyDocumentReconciler.read."""

    def test_unchanged_published_policy(self, mock_directory_client, published_document):
        """Test an unchanged template that still exists remotely is kept."""
        reconciler = PolicyDocumentReconciler(mock_directory_client)
        persisted = reconciler.render(published_document)

        state = reconciler.read(persisted)

        assert state == persisted
        mock_directory_client.get_policy.assert_called_once_with(
            "B2C_1A_TrustFrameworkBase", cancel_event=None
        )

    def test_template_change_is_drift(self, mock_directory_client, published_document):
        """Test a changed rendering removes the policy from state."""
        reconciler = PolicyDocumentReconciler(mock_directory_client)
        persisted = reconciler.render(published_document)
        changed_settings = dict(SETTINGS, TenantName="fabrikam")

        state = reconciler.read(
            PolicyDocument(
                file=persisted.file,
                app_settings=changed_settings,
                publish=True,
                xml=persisted.xml,
                id=persisted.id,
            )
        )

        assert state is None
        mock_directory_client.get_policy.assert_not_called()

    def test_remote_missing_is_drift(self, mock_directory_client, published_document):
        """Test a policy Graph no longer has is removed from state."""
        mock_directory_client.get_policy.side_effect = RemoteError(
            "Read policy: Graph returned 404 Not Found", status_code=404
        )
        reconciler = PolicyDocumentReconciler(mock_directory_client)
        persisted = reconciler.render(published_document)

        assert reconciler.read(persisted) is None

    def test_transport_failure_is_drift(self, mock_directory_client, published_document):
        """Test an unreachable Graph also schedules a re-create."""
        mock_directory_client.get_policy.side_effect = DirectoryTransportError(
            "Graph request timed out"
        )
        reconciler = PolicyDocumentReconciler(mock_directory_client)
        persisted = reconciler.render(published_document)

        assert reconciler.read(persisted) is None

    def test_cancellation_propagates(self, mock_directory_client, published_document):
        """Test cancellation is not mistaken for drift."""
        mock_directory_client.get_policy.side_effect = OperationCancelledError(
            "Read policy cancelled by caller", operation="Read policy"
        )
        reconciler = PolicyDocumentReconciler(mock_directory_client)
        persisted = reconciler.render(published_document)

        with pytest.raises(OperationCancelledError):
            reconciler.read(persisted)

    def test_unpublished_read_is_local(self, mock_directory_client, policy_template):
        """Test unpublished policies are never fetched."""
        reconciler = PolicyDocumentReconciler(mock_directory_client)
        persisted = reconciler.render(PolicyDocument(file=policy_template, app_settings=SETTINGS))

        assert reconciler.read(persisted) == persisted
        mock_directory_client.get_policy.assert_not_called()


class TestDelete:
    """Test cases for PolicyDocumentReconciler.delete."""

    def test_delete_published(self, mock_directory_client, published_document):
        """Test a published policy is deleted by id."""
        reconciler = PolicyDocumentReconciler(mock_directory_client)
        reconciler.delete(reconciler.render(published_document))
        mock_directory_client.delete_policy.assert_called_once_with(
            "B2C_1A_TrustFrameworkBase", cancel_event=None
        )

    def test_delete_unpublished(self, mock_directory_client, policy_template):
        """Test an unpublished policy has nothing to delete."""
        reconciler = PolicyDocumentReconciler(mock_directory_client)
        reconciler.delete(PolicyDocument(file=policy_template, id="B2C_1A_X"))
        mock_directory_client.delete_policy.assert_not_called()

    def test_delete_without_id(self, mock_directory_client):
        """Test a published snapshot with no id is skipped."""
        reconciler = PolicyDocumentReconciler(mock_directory_client)
        reconciler.delete(PolicyDocument(file="x.xml", publish=True))
        mock_directory_client.delete_policy.assert_not_called()
