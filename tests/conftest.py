from typing import Any, Callable, Dict, List
from unittest.mock import Mock

import httpx
import pytest

from b2c_ief.models.key_container import GenerateSpec, KeyContainer, KeyUsage, UploadSpec
from b2c_ief.services.directory_client import DirectoryClient

BASE_URL = "https://graph.example.test/beta"

NOT_FOUND_BODY = (
    '{"error":{"code":"AADB2C","message":"The key set with ID \'B2C_1A_Gone\' '
    'cannot be found. Correlation ID: abc. AADB2C90073"}}'
)

SAMPLE_POLICY_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<TrustFrameworkPolicy xmlns="http://schemas.microsoft.com/online/cpim/schemas/2013/06"
  PolicySchemaVersion="0.3.0.0"
  TenantId="{settings:TenantName}.onmicrosoft.com"
  PolicyId="B2C_1A_TrustFrameworkBase">
  <BasePolicy PolicyId="B2C_1A_Ignored" />
  <ClaimsProvider>
    <Item Key="client_id">{settings:ProxyIdentityExperienceFrameworkAppId}</Item>
  </ClaimsProvider>
</TrustFrameworkPolicy>
"""


@pytest.fixture
def mock_directory_client():
    """Provide a DirectoryClient double that records calls."""
    client = Mock(spec=DirectoryClient)
    client.create_key_set.return_value = "B2C_1A_TestKey"
    client.get_key_set.return_value = {"id": "B2C_1A_TestKey", "keys": []}
    client.get_policy.return_value = "<TrustFrameworkPolicy />"
    return client


@pytest.fixture
def generated_container() -> KeyContainer:
    return KeyContainer(
        name="TestKey",
        usage=KeyUsage.SIGNING,
        provisioning=GenerateSpec(key_type="RSA"),
    )


@pytest.fixture
def uploaded_container() -> KeyContainer:
    return KeyContainer(
        name="TestKey",
        usage=KeyUsage.ENCRYPTION,
        provisioning=UploadSpec(value="super-secret", value_version=1),
    )


@pytest.fixture
def policy_template(tmp_path):
    """Write the sample policy template and return its path."""
    path = tmp_path / "TrustFrameworkBase.xml"
    path.write_text(SAMPLE_POLICY_TEMPLATE, encoding="utf-8")
    return str(path)


@pytest.fixture
def mock_credential():
    credential = Mock()
    credential.get_token.return_value = Mock(token="test-token")
    return credential


@pytest.fixture
def graph_transport() -> Callable[..., Any]:
    """Build a DirectoryClient whose HTTP traffic goes to a scripted handler.

    Returns a factory taking ``routes``: (method, path) -> httpx.Response.
    Every request seen is appended to ``factory.requests``.
    """
    requests: List[httpx.Request] = []

    def factory(routes: Dict[Any, httpx.Response], credential: Any) -> DirectoryClient:
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            key = (request.method, request.url.path)
            if key not in routes:
                return httpx.Response(500, text=f"unexpected request {key}")
            return routes[key]

        http_client = httpx.Client(transport=httpx.MockTransport(handler))
        return DirectoryClient(credential, base_url=BASE_URL, http_client=http_client)

    factory.requests = requests  # type: ignore[attr-defined]
    return factory


@pytest.fixture
def sample_policy_xml() -> str:
    return SAMPLE_POLICY_TEMPLATE


@pytest.fixture
def not_found_body() -> str:
    return NOT_FOUND_BODY
