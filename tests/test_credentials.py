import json
from typing import Any

import pytest

from core.auth.credentials import Credential, load_credential
from core.errors import CredentialError


def test_load_credential_parses_service_account(credentials_json: str, private_key_pem: str) -> None:
    credential = load_credential(credentials_json)

    assert credential == Credential(
        issuer_identity="connector@demo-agent.iam.gserviceaccount.com",
        signing_key_pem=private_key_pem,
        project_id="demo-agent",
        private_key_id="key-123",
    )


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_load_credential_rejects_missing_bundle(raw: str | None) -> None:
    with pytest.raises(CredentialError, match="not configured"):
        load_credential(raw)


def test_load_credential_rejects_malformed_json() -> None:
    with pytest.raises(CredentialError, match="not valid JSON"):
        load_credential("{not json")


def test_load_credential_rejects_non_object() -> None:
    with pytest.raises(CredentialError, match="JSON object"):
        load_credential(json.dumps(["a", "b"]))


def test_load_credential_reports_missing_fields(service_account_info: dict[str, Any]) -> None:
    del service_account_info["private_key"]
    service_account_info["client_email"] = ""

    with pytest.raises(CredentialError) as excinfo:
        load_credential(json.dumps(service_account_info))

    assert "client_email" in str(excinfo.value)
    assert "private_key" in str(excinfo.value)
    assert "project_id" not in str(excinfo.value)


def test_project_id_falls_back_to_default(service_account_info: dict[str, Any]) -> None:
    del service_account_info["project_id"]

    credential = load_credential(json.dumps(service_account_info), default_project_id="other-agent")

    assert credential.project_id == "other-agent"


def test_bundle_project_id_wins_over_default(credentials_json: str) -> None:
    credential = load_credential(credentials_json, default_project_id="other-agent")

    assert credential.project_id == "demo-agent"
