"""IEF policy templating. The reconciler lives in ``b2c_ief.policy.reconciler``."""

from .policy_id import get_policy_id
from .settings_injector import inject_app_settings

__all__ = ["get_policy_id", "inject_app_settings"]
