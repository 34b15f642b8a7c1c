"""
Directory Client - Microsoft Graph trustFramework client.

Philosophy:
- One explicitly constructed capability object per provider, no module globals
- Synchronous httpx client with a single fixed timeout
- Unexpected statuses become RemoteError carrying the response body
- No retries: failures are reported upward and the caller decides

Public API:
    DirectoryClient: keySets and policies operations used by the reconcilers
"""

import json
import threading
from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote

import httpx
import structlog
from azure.core.credentials import TokenCredential
from azure.core.exceptions import AzureError
from azure.identity import ClientSecretCredential

from ..config_manager import DEFAULT_GRAPH_BASE_URL, GRAPH_SCOPE, GraphConfig
from ..exceptions import (
    OperationCancelledError,
    RemoteError,
    wrap_transport_exception,
)
from ..timeout_config import Timeouts

logger = structlog.get_logger(__name__)

_REDACTED = "***"
_SECRET_PAYLOAD_KEYS = ("k",)


def _redact(body: Optional[Dict[str, Any]]) -> Any:
    if body is None:
        return "<empty>"
    return {
        key: (_REDACTED if key in _SECRET_PAYLOAD_KEYS else value)
        for key, value in body.items()
    }


def _check_cancelled(cancel_event: Optional[threading.Event], operation: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelledError(
            f"{operation} cancelled by caller", operation=operation
        )


class DirectoryClient:
    """
    Authenticated client for the Graph beta trustFramework endpoints.

    Use as a context manager (or call close()) to release the HTTP connection
    pool and the credential.
    """

    def __init__(
        self,
        credential: TokenCredential,
        base_url: str = DEFAULT_GRAPH_BASE_URL,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        """
        Initialize the directory client.

        Args:
            credential: Azure credential able to issue Graph tokens
            base_url: Graph API root (default: beta endpoint)
            http_client: Optional preconfigured httpx client
        """
        self.credential = credential
        self.base_url = base_url.rstrip("/")
        self._http_client = http_client or httpx.Client(
            timeout=httpx.Timeout(Timeouts.GRAPH_REQUEST)
        )

    @classmethod
    def from_config(cls, config: GraphConfig) -> "DirectoryClient":
        """Build a client from validated Graph configuration."""
        config.validate()
        credential = ClientSecretCredential(
            tenant_id=config.tenant_id,
            client_id=config.client_id,
            client_secret=config.client_secret,
            connection_timeout=Timeouts.TOKEN_REQUEST,
        )
        logger.debug(
            "directory_client.configured",
            tenant_id=config.tenant_id,
            client_id=config.get_safe_client_id(),
        )
        return cls(credential, base_url=config.base_url)

    def __enter__(self) -> "DirectoryClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http_client.close()
        close = getattr(self.credential, "close", None)
        if callable(close):
            close()

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------

    def _get_token(self) -> str:
        return self.credential.get_token(GRAPH_SCOPE).token

    def _request(
        self,
        method: str,
        path: str,
        expected: Iterable[int],
        operation: str,
        json_body: Optional[Dict[str, Any]] = None,
        xml_body: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        cancel_after_response: bool = True,
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        _check_cancelled(cancel_event, operation)

        logger.debug(
            "graph.request",
            method=method,
            url=url,
            payload=_redact(json_body) if xml_body is None else "<xml>",
        )

        headers: Dict[str, str] = {}
        content: Optional[bytes] = None
        if xml_body is not None:
            headers["Content-Type"] = "application/xml"
            content = xml_body.encode("utf-8")
        elif json_body is not None:
            headers["Content-Type"] = "application/json"
            content = json.dumps(json_body).encode("utf-8")

        try:
            headers["Authorization"] = f"Bearer {self._get_token()}"
            response = self._http_client.request(
                method, url, content=content, headers=headers
            )
        except (httpx.HTTPError, AzureError) as e:
            logger.error("graph.request_failed", method=method, url=url, error=str(e))
            raise wrap_transport_exception(e, method, url) from e

        if cancel_after_response:
            _check_cancelled(cancel_event, operation)

        logger.debug(
            "graph.response",
            operation=operation,
            status=response.status_code,
            body=response.text,
        )

        if response.status_code not in tuple(expected):
            logger.error(
                "graph.unexpected_status",
                operation=operation,
                status=response.status_code,
            )
            raise RemoteError(
                f"{operation}: Graph returned {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                response_body=response.text,
                method=method,
                url=url,
            )
        return response

    @staticmethod
    def _parse_json(response: httpx.Response, operation: str) -> Dict[str, Any]:
        try:
            parsed = response.json()
        except ValueError as e:
            raise RemoteError(
                f"{operation}: error parsing graph response",
                status_code=response.status_code,
                response_body=response.text,
                cause=e,
            ) from e
        if not isinstance(parsed, dict):
            raise RemoteError(
                f"{operation}: unexpected graph response shape",
                status_code=response.status_code,
                response_body=response.text,
            )
        return parsed

    # ------------------------------------------------------------------
    # keySets
    # ------------------------------------------------------------------

    def create_key_set(
        self, name: str, usage: str, cancel_event: Optional[threading.Event] = None
    ) -> str:
        """Create an empty key container and return its Graph identifier."""
        operation = "Create keyset"
        response = self._request(
            "POST",
            "/trustFramework/keySets",
            expected=(201,),
            operation=operation,
            json_body={"id": name, "usage": usage, "keys": []},
            cancel_event=cancel_event,
            # Once the POST succeeded the container exists; its id must reach the caller
            cancel_after_response=False,
        )
        container_id = self._parse_json(response, operation).get("id")
        if not container_id:
            raise RemoteError(
                f"{operation}: response did not include an id",
                status_code=response.status_code,
                response_body=response.text,
            )
        return str(container_id)

    def generate_key(
        self,
        container_id: str,
        usage: str,
        key_type: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self._request(
            "POST",
            f"/trustFramework/keySets/{quote(container_id, safe='')}/generateKey",
            expected=(200,),
            operation="Generate key",
            json_body={"use": usage, "kty": key_type},
            cancel_event=cancel_event,
        )

    def upload_secret(
        self,
        container_id: str,
        usage: str,
        value: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self._request(
            "POST",
            f"/trustFramework/keySets/{quote(container_id, safe='')}/uploadSecret",
            expected=(200,),
            operation="Upload secret",
            json_body={"use": usage, "k": value},
            cancel_event=cancel_event,
        )

    def get_key_set(
        self, container_id: str, cancel_event: Optional[threading.Event] = None
    ) -> Dict[str, Any]:
        """Fetch a key container.

        Raises:
            RemoteError: On any non-200 answer; check ``is_not_found_in_directory``
                to tell a deleted container from other failures.
        """
        operation = "Read keysets"
        response = self._request(
            "GET",
            f"/trustFramework/keySets/{quote(container_id, safe='')}",
            expected=(200,),
            operation=operation,
            cancel_event=cancel_event,
        )
        return self._parse_json(response, operation)

    def delete_key_set(
        self, container_id: str, cancel_event: Optional[threading.Event] = None
    ) -> None:
        self._request(
            "DELETE",
            f"/trustFramework/keySets/{quote(container_id, safe='')}",
            expected=(204,),
            operation="Delete keyset",
            cancel_event=cancel_event,
        )

    # ------------------------------------------------------------------
    # policies
    # ------------------------------------------------------------------

    def put_policy(
        self,
        policy_id: str,
        policy_xml: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self._request(
            "PUT",
            f"/trustFramework/policies/{quote(policy_id, safe='')}/$value",
            expected=(200, 201),
            operation="Upload policy",
            xml_body=policy_xml,
            cancel_event=cancel_event,
        )

    def get_policy(
        self, policy_id: str, cancel_event: Optional[threading.Event] = None
    ) -> str:
        response = self._request(
            "GET",
            f"/trustFramework/policies/{quote(policy_id, safe='')}/$value",
            expected=(200,),
            operation="Read policy",
            cancel_event=cancel_event,
        )
        return response.text

    def delete_policy(
        self, policy_id: str, cancel_event: Optional[threading.Event] = None
    ) -> None:
        self._request(
            "DELETE",
            f"/trustFramework/policies/{quote(policy_id, safe='')}",
            expected=(204,),
            operation="Delete policy",
            cancel_event=cancel_event,
        )
