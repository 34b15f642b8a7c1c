"""
B2C IEF

Reconcilers for Azure AD B2C Identity Experience Framework resources: policy
key containers and custom policy documents, managed through the Microsoft
Graph trustFramework API.
"""

from .exceptions import (
    B2CIEFError,
    ConfigurationError,
    DirectoryTransportError,
    InvariantError,
    OperationCancelledError,
    ProvisioningFailedError,
    RemoteError,
    ValidationError,
)
from .keys.reconciler import KeyContainerReconciler
from .models import GenerateSpec, KeyContainer, KeyUsage, PolicyDocument, UploadSpec
from .policy.reconciler import PolicyDocumentReconciler
from .provider import B2CIEFProvider
from .services.directory_client import DirectoryClient

__all__ = [
    "B2CIEFError",
    "B2CIEFProvider",
    "ConfigurationError",
    "DirectoryClient",
    "DirectoryTransportError",
    "GenerateSpec",
    "InvariantError",
    "KeyContainer",
    "KeyContainerReconciler",
    "KeyUsage",
    "OperationCancelledError",
    "PolicyDocument",
    "PolicyDocumentReconciler",
    "ProvisioningFailedError",
    "RemoteError",
    "UploadSpec",
    "ValidationError",
]
