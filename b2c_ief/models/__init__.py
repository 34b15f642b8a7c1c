"""Models module for the B2C IEF reconcilers."""

from .key_container import (
    FORCE_UPLOAD_VERSION,
    GenerateSpec,
    KeyContainer,
    KeyUsage,
    UploadSpec,
)
from .policy_document import PolicyDocument
from .schema import KeyContainerSpec, PolicyDocumentSpec

__all__ = [
    "FORCE_UPLOAD_VERSION",
    "GenerateSpec",
    "KeyContainer",
    "KeyContainerSpec",
    "KeyUsage",
    "PolicyDocument",
    "PolicyDocumentSpec",
    "UploadSpec",
]
