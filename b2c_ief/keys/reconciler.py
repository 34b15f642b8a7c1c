"""
Key container reconciler.

Drives one key container through Absent -> Created -> Provisioned ->
(Updated)* -> Deleted against the Graph keySets API. Every snapshot leaving
this module has passed through sanitize_write_only_fields(); every persisted
snapshot coming in passes through sanitize_legacy_state() first.

Public API:
    KeyContainerReconciler: create / read / update / delete
"""

import threading
from typing import Optional

import structlog

from ..exceptions import B2CIEFError, ProvisioningFailedError, RemoteError
from ..models.key_container import KeyContainer
from ..services.directory_client import DirectoryClient
from .sanitizer import sanitize_legacy_state, sanitize_write_only_fields
from .upload_decision import (
    ProvisioningAction,
    ProvisioningDecision,
    decide_provisioning,
)

logger = structlog.get_logger(__name__)


class KeyContainerReconciler:
    """Reconciles B2C policy key containers.

    Args:
        client: DirectoryClient used for every remote call
    """

    type_name = "policy_key"

    def __init__(self, client: DirectoryClient) -> None:
        self.client = client

    def _apply(
        self,
        container: KeyContainer,
        decision: ProvisioningDecision,
        cancel_event: Optional[threading.Event],
    ) -> None:
        if decision.action is ProvisioningAction.GENERATE:
            logger.info(
                "key_container.generate",
                key_name=container.name,
                key_id=container.id,
                key_type=decision.key_type,
            )
            self.client.generate_key(
                container.id,
                decision.usage,
                decision.key_type or "RSA",
                cancel_event=cancel_event,
            )
        elif decision.action is ProvisioningAction.UPLOAD:
            logger.info(
                "key_container.upload",
                key_name=container.name,
                key_id=container.id,
                reason=decision.reason,
            )
            self.client.upload_secret(
                container.id,
                decision.usage,
                decision.secret or "",
                cancel_event=cancel_event,
            )
        else:
            logger.info(
                "key_container.upload_skipped",
                key_name=container.name,
                key_id=container.id,
                reason=decision.reason,
            )

    def create(
        self, desired: KeyContainer, cancel_event: Optional[threading.Event] = None
    ) -> KeyContainer:
        """
        Create the container and provision its key material.

        Returns:
            Sanitized snapshot to persist

        Raises:
            ValidationError: The upload block is unusable; nothing was created
            RemoteError: The container could not be created; nothing to persist
            ProvisioningFailedError: The container exists but key generation or
                upload failed. ``error.state`` must still be persisted.
        """
        logger.debug("key_container.create.begin", key_name=desired.name)

        decision = decide_provisioning(desired)

        container_id = desired.id
        if not container_id:
            try:
                container_id = self.client.create_key_set(
                    desired.name, desired.usage.value, cancel_event=cancel_event
                )
            except RemoteError as e:
                logger.error(
                    "key_container.create.failed",
                    key_name=desired.name,
                    error=e.message,
                )
                raise
        created = desired.with_id(container_id)

        try:
            self._apply(created, decision, cancel_event)
        except B2CIEFError as e:
            state = sanitize_write_only_fields(created)
            logger.error(
                "key_container.provisioning.failed",
                key_name=created.name,
                key_id=created.id,
                error=e.message,
            )
            raise ProvisioningFailedError(
                f"Container {created.name} was created but provisioning failed: {e.message}",
                state=state,
                cause=e,
                context={"key_id": created.id},
            ) from e

        logger.debug("key_container.create.complete", key_id=container_id)
        return sanitize_write_only_fields(created)

    def read(
        self, persisted: KeyContainer, cancel_event: Optional[threading.Event] = None
    ) -> Optional[KeyContainer]:
        """
        Refresh a persisted container from Graph.

        Returns:
            Sanitized snapshot, or None when the container no longer exists and
            must be removed from state

        Raises:
            RemoteError: Any failure other than "not found in directory"
        """
        state = sanitize_legacy_state(persisted)
        if not state.id:
            logger.info("key_container.read.no_id", key_name=state.name)
            return None

        try:
            remote = self.client.get_key_set(state.id, cancel_event=cancel_event)
        except RemoteError as e:
            if e.is_not_found_in_directory:
                logger.info(
                    "key_container.drift",
                    key_name=state.name,
                    key_id=state.id,
                    detail="Keyset does not exist, removing from state",
                )
                return None
            raise

        # Graph never echoes secret metadata; the version marker comes from state
        refreshed = state.with_id(str(remote.get("id") or state.id))
        logger.debug("key_container.read.complete", key_id=refreshed.id)
        return sanitize_write_only_fields(refreshed)

    def update(
        self,
        desired: KeyContainer,
        persisted: KeyContainer,
        cancel_event: Optional[threading.Event] = None,
    ) -> KeyContainer:
        """
        Re-provision when needed and rebuild the persisted snapshot.

        Raises:
            ValidationError: Bad version marker or missing secret
            RemoteError: The generate/upload call failed
        """
        logger.debug("key_container.update.begin", key_name=desired.name)
        state = sanitize_legacy_state(persisted)
        target = desired if desired.id else desired.with_id(state.id)

        decision = decide_provisioning(target, state.upload)
        self._apply(target, decision, cancel_event)

        logger.debug("key_container.update.complete", key_id=target.id)
        return sanitize_write_only_fields(target)

    def delete(
        self, persisted: KeyContainer, cancel_event: Optional[threading.Event] = None
    ) -> None:
        """Delete the remote container. No-op when it was never created."""
        state = sanitize_legacy_state(persisted)
        if not state.id:
            logger.info("key_container.delete.no_id", key_name=state.name)
            return
        self.client.delete_key_set(state.id, cancel_event=cancel_event)
        logger.debug("key_container.delete.complete", key_id=state.id)
