"""
Write-only field handling for key container snapshots.

``upload.value`` is accepted from desired configuration but must never be
persisted. Both functions are total and return a new snapshot; the input is
left untouched.
"""

import structlog

from ..models.key_container import KeyContainer

logger = structlog.get_logger(__name__)


def sanitize_write_only_fields(container: KeyContainer) -> KeyContainer:
    """Return ``container`` with its upload secret nulled and version kept.

    No-op for generated keys.
    """
    upload = container.upload
    if upload is None:
        return container
    if upload.has_value:
        logger.debug(
            "write_only.sanitized",
            key_name=container.name,
            key_id=container.id,
        )
    return container.with_provisioning(upload.without_value())


def sanitize_legacy_state(container: KeyContainer) -> KeyContainer:
    """Remove a secret that an older release stored in persisted state."""
    upload = container.upload
    if upload is None or not upload.has_value:
        return container
    logger.warning(
        "legacy_state_cleanup",
        detail=(
            "Removing write-only value from state. A previous release stored "
            "upload.value in state; it has been sanitized."
        ),
        key_name=container.name,
        key_id=container.id,
    )
    return container.with_provisioning(upload.without_value())
