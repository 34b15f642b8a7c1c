"""
Decide which Graph write, if any, a key container needs.

Generated keys are regenerated on every create/update. Uploaded secrets are
gated by ``value_version``:

    ========================  =====================================
    desired value_version     upload?
    ========================  =====================================
    None                      always
    -1                        always (forced)
    >= 0                      when it differs from the persisted one
    anything else             ValidationError
    ========================  =====================================

The result only describes the write; KeyContainerReconciler performs it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import structlog

from ..exceptions import InvariantError, ValidationError
from ..models.key_container import (
    FORCE_UPLOAD_VERSION,
    GenerateSpec,
    KeyContainer,
    UploadSpec,
)

logger = structlog.get_logger(__name__)


class ProvisioningAction(str, Enum):
    GENERATE = "generate"
    UPLOAD = "upload"
    NONE = "none"


@dataclass(frozen=True)
class ProvisioningDecision:
    """Outcome of decide_provisioning()."""

    action: ProvisioningAction
    usage: str
    reason: str
    key_type: Optional[str] = None
    secret: Optional[str] = field(default=None, repr=False)

    @property
    def requires_remote_write(self) -> bool:
        return self.action is not ProvisioningAction.NONE

    @property
    def payload(self) -> Dict[str, Any]:
        """Graph request body for the write."""
        if self.action is ProvisioningAction.GENERATE:
            return {"use": self.usage, "kty": self.key_type}
        if self.action is ProvisioningAction.UPLOAD:
            return {"use": self.usage, "k": self.secret}
        return {}


def validate_value_version(value_version: Optional[int]) -> None:
    if value_version is None or value_version == FORCE_UPLOAD_VERSION:
        return
    if isinstance(value_version, bool) or not isinstance(value_version, int):
        raise ValidationError(
            f"value_version must be an integer, got {value_version!r}",
            attribute="upload.value_version",
        )
    if value_version < 0:
        raise ValidationError(
            "value_version must be -1 or >= 0", attribute="upload.value_version"
        )


def _upload_reason(desired: UploadSpec, persisted: Optional[UploadSpec]) -> Optional[str]:
    version = desired.value_version
    if version is None:
        return "value_version is null, uploading on every run"
    if version == FORCE_UPLOAD_VERSION:
        return "value_version is -1, forcing upload"
    previous = persisted.value_version if persisted else None
    if version != previous:
        return f"value_version changed from {previous} to {version}"
    return None


def decide_provisioning(
    desired: KeyContainer, persisted_upload: Optional[UploadSpec] = None
) -> ProvisioningDecision:
    """
    Work out the provisioning write for ``desired``.

    Args:
        desired: Desired configuration, including the upload secret if any
        persisted_upload: UploadSpec from the last persisted snapshot (None on
            create, or when the container used to be generated)

    Returns:
        ProvisioningDecision; action NONE means Graph must not be contacted

    Raises:
        ValidationError: Bad value_version, or an upload without a secret
        InvariantError: Neither provisioning mode is present
    """
    usage = desired.usage.value
    provisioning = desired.provisioning

    if isinstance(provisioning, GenerateSpec):
        return ProvisioningDecision(
            action=ProvisioningAction.GENERATE,
            usage=usage,
            key_type=provisioning.key_type,
            reason="generate block present",
        )

    if isinstance(provisioning, UploadSpec):
        validate_value_version(provisioning.value_version)
        reason = _upload_reason(provisioning, persisted_upload)
        if reason is None:
            logger.debug(
                "upload.skipped",
                key_name=desired.name,
                value_version=provisioning.value_version,
            )
            return ProvisioningDecision(
                action=ProvisioningAction.NONE,
                usage=usage,
                reason=f"value_version {provisioning.value_version} unchanged",
            )
        if not provisioning.value:
            raise ValidationError(
                "cannot upload an empty secret: upload.value cannot be null "
                "when an upload is required",
                attribute="upload.value",
            )
        logger.debug("upload.required", key_name=desired.name, reason=reason)
        return ProvisioningDecision(
            action=ProvisioningAction.UPLOAD,
            usage=usage,
            secret=provisioning.value,
            reason=reason,
        )

    raise InvariantError(
        "No provisioning method specified OR an invalid block was given"
    )
