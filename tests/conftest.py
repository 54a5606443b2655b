import json
from typing import Any

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

PROJECT_ID = "demo-agent"
CLIENT_EMAIL = "connector@demo-agent.iam.gserviceaccount.com"


class FakeResponse:
    """
    Minimal stand-in for requests.Response.
    """

    def __init__(
        self,
        status_code: int = 200,
        payload: Any = None,
        text: str | None = None,
        reason: str = "OK",
    ) -> None:
        self.status_code = status_code
        self._payload = payload
        self.reason = reason
        if text is not None:
            self.text = text
        elif payload is not None:
            self.text = json.dumps(payload)
        else:
            self.text = ""

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeHttpSession:
    """
    Records POST calls and replays queued responses in order.
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.responses: list[Any] = []

    def queue(self, status_code: int = 200, payload: Any = None, **kwargs: Any) -> "FakeHttpSession":
        self.responses.append(FakeResponse(status_code, payload, **kwargs))
        return self

    def fail_with(self, error: Exception) -> "FakeHttpSession":
        self.responses.append(error)
        return self

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"Unexpected POST to {url}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    """
    Generate an RSA key once per test session.

    Returns:
        rsa.RSAPrivateKey: The private key.
    """
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key: rsa.RSAPrivateKey) -> str:
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture
def service_account_info(private_key_pem: str) -> dict[str, Any]:
    """
    Service account key file contents, as downloaded from the console.

    Returns:
        dict[str, Any]: The key file as a dictionary.
    """
    return {
        "type": "service_account",
        "project_id": PROJECT_ID,
        "private_key_id": "key-123",
        "private_key": private_key_pem,
        "client_email": CLIENT_EMAIL,
        "token_uri": "https://oauth2.googleapis.com/token",
    }


@pytest.fixture
def credentials_json(service_account_info: dict[str, Any]) -> str:
    return json.dumps(service_account_info)


@pytest.fixture
def fake_http() -> FakeHttpSession:
    return FakeHttpSession()


@pytest.fixture
def token_payload() -> dict[str, Any]:
    return {"access_token": "ya29.test-token", "token_type": "Bearer", "expires_in": 3599}


@pytest.fixture
def query_result():
    """
    Build a detectIntent response body.

    Returns:
        Callable[..., dict[str, Any]]: Factory for response payloads.
    """

    def build(
        intent: str | None = "Greeting",
        text: str | None = "Hi there!",
        confidence: float | None = 0.9,
        contexts: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        result: dict[str, Any] = {"queryText": "ignored"}
        if intent is not None:
            result["intent"] = {"name": "projects/demo-agent/agent/intents/abc", "displayName": intent}
        if text is not None:
            result["fulfillmentText"] = text
        if confidence is not None:
            result["intentDetectionConfidence"] = confidence
        if contexts is not None:
            result["outputContexts"] = contexts
        return {"responseId": "r-1", "queryResult": result}

    return build
