"""Policy key container reconciliation."""

from .reconciler import KeyContainerReconciler
from .sanitizer import sanitize_legacy_state, sanitize_write_only_fields
from .upload_decision import (
    ProvisioningAction,
    ProvisioningDecision,
    decide_provisioning,
)

__all__ = [
    "KeyContainerReconciler",
    "ProvisioningAction",
    "ProvisioningDecision",
    "decide_provisioning",
    "sanitize_legacy_state",
    "sanitize_write_only_fields",
]
