"""
Provider wiring.

The Azure AD B2C IEF provider manages custom policies and policy keys through
the Microsoft Graph API. B2CIEFProvider owns the one DirectoryClient shared by
both reconcilers and is the explicit construction/teardown boundary for it.

Usage:
    ```python
    from b2c_ief.config_manager import create_config_from_env
    from b2c_ief.provider import B2CIEFProvider

    with B2CIEFProvider.from_config(create_config_from_env()) as provider:
        state = provider.key_containers.create(desired)
    ```
"""

from typing import Any, Dict, Union

import structlog

from .config_manager import B2CIEFConfig
from .keys.reconciler import KeyContainerReconciler
from .policy.reconciler import PolicyDocumentReconciler
from .services.directory_client import DirectoryClient

logger = structlog.get_logger(__name__)

PROVIDER_TYPE_NAME = "azure-b2c-ief"

Reconciler = Union[KeyContainerReconciler, PolicyDocumentReconciler]


class B2CIEFProvider:
    """Holds the Graph client and the reconcilers built on it."""

    def __init__(self, client: DirectoryClient) -> None:
        self.client = client
        self.key_containers = KeyContainerReconciler(client)
        self.policies = PolicyDocumentReconciler(client)

    @classmethod
    def from_config(cls, config: B2CIEFConfig) -> "B2CIEFProvider":
        """Create the Graph client from configuration.

        Raises:
            MissingConfigurationError: If service principal credentials are missing
        """
        client = DirectoryClient.from_config(config.graph)
        logger.info(
            "provider.configured",
            tenant_id=config.graph.tenant_id,
            base_url=config.graph.base_url,
        )
        return cls(client)

    def resources(self) -> Dict[str, Reconciler]:
        """Resource type name to reconciler."""
        return {
            f"{PROVIDER_TYPE_NAME}_{reconciler.type_name}": reconciler
            for reconciler in (self.key_containers, self.policies)
        }

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "B2CIEFProvider":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
