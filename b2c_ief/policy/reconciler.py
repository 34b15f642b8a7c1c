"""
IEF policy document reconciler.

The persisted ``xml`` is whatever the template rendered to last time. Read
re-renders the template and treats any difference as drift, so the framework
schedules a fresh Create/Update rather than comparing against Graph.
"""

import threading
from typing import Callable, Optional

import structlog

from ..exceptions import ConfigurationError, RemoteError
from ..models.policy_document import PolicyDocument
from ..services.directory_client import DirectoryClient
from .settings_injector import inject_app_settings
from .template_source import load_template

logger = structlog.get_logger(__name__)

TemplateLoader = Callable[[str], str]


class PolicyDocumentReconciler:
    """Reconciles trustFramework policies rendered from XML templates."""

    type_name = "policy"

    def __init__(
        self,
        client: DirectoryClient,
        template_loader: TemplateLoader = load_template,
    ) -> None:
        self.client = client
        self.template_loader = template_loader

    def render(self, document: PolicyDocument) -> PolicyDocument:
        """Load the template, inject app settings and derive the policy id."""
        template = self.template_loader(document.file)
        rendered = document.with_xml(
            inject_app_settings(template, document.app_settings)
        )
        logger.debug("policy.rendered", file=document.file, policy_id=rendered.id)
        return rendered

    def _put(
        self, document: PolicyDocument, cancel_event: Optional[threading.Event]
    ) -> PolicyDocument:
        rendered = self.render(document)
        if rendered.publish:
            if not rendered.id:
                raise ConfigurationError(
                    f"Cannot publish {document.file}: the first element has no PolicyId",
                    context={"file": document.file},
                )
            logger.info("policy.publish", policy_id=rendered.id)
            self.client.put_policy(rendered.id, rendered.xml, cancel_event=cancel_event)
        return rendered

    def create(
        self, desired: PolicyDocument, cancel_event: Optional[threading.Event] = None
    ) -> PolicyDocument:
        """
        Render the policy and publish it when requested.

        Raises:
            ConfigurationError: The template is missing or unreadable
            RemoteError: Graph rejected the upload (body in ``response_body``)
        """
        logger.debug("policy.create.begin", file=desired.file, publish=desired.publish)
        rendered = self._put(desired, cancel_event)
        logger.debug("policy.create.complete", policy_id=rendered.id)
        return rendered

    def update(
        self, desired: PolicyDocument, cancel_event: Optional[threading.Event] = None
    ) -> PolicyDocument:
        """Same as create(); the PUT is keyed by the derived PolicyId."""
        logger.debug("policy.update.begin", file=desired.file, publish=desired.publish)
        rendered = self._put(desired, cancel_event)
        logger.debug("policy.update.complete", policy_id=rendered.id)
        return rendered

    def read(
        self, persisted: PolicyDocument, cancel_event: Optional[threading.Event] = None
    ) -> Optional[PolicyDocument]:
        """
        Check the persisted policy against its template and against Graph.

        Returns:
            The persisted snapshot, or None when it has drifted and must be
            removed from state
        """
        rendered = self.render(persisted)
        if rendered.xml != persisted.xml:
            logger.info("policy.drift.template_changed", file=persisted.file)
            return None

        if persisted.publish:
            try:
                self.client.get_policy(rendered.id, cancel_event=cancel_event)
            except RemoteError as e:
                if e.status_code is None:
                    logger.warning(
                        "policy.drift.transport_failure",
                        policy_id=rendered.id,
                        error=e.message,
                    )
                else:
                    logger.info(
                        "policy.drift.remote_missing",
                        policy_id=rendered.id,
                        status=e.status_code,
                    )
                return None

        logger.debug("policy.read.complete", policy_id=rendered.id)
        return rendered

    def delete(
        self, persisted: PolicyDocument, cancel_event: Optional[threading.Event] = None
    ) -> None:
        """Delete the published policy. No-op for unpublished documents."""
        if not persisted.publish:
            logger.debug("policy.delete.unpublished", policy_id=persisted.id)
            return
        if not persisted.id:
            logger.warning("policy.delete.no_id", file=persisted.file)
            return
        self.client.delete_policy(persisted.id, cancel_event=cancel_event)
        logger.debug("policy.delete.complete", policy_id=persisted.id)
