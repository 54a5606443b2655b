"""
Service account credential loading.

The whole credential bundle arrives as one opaque configuration value: the
JSON key file of a Google Cloud service account.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from core.errors import CredentialError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    """Identity used to sign token assertions"""
    issuer_identity: str
    signing_key_pem: str
    project_id: str
    private_key_id: Optional[str] = None


def load_credential(raw: Optional[str], default_project_id: Optional[str] = None) -> Credential:
    """
    Parse a service account JSON bundle.

    Args:
        raw: The service account key as a JSON string
        default_project_id: Project to use when the bundle does not name one

    Returns:
        Parsed credential

    Raises:
        CredentialError: If the bundle is missing, not JSON, or incomplete
    """
    if not raw or not raw.strip():
        logger.error("Service account credentials not configured")
        raise CredentialError("Service account credentials not configured")

    try:
        info = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CredentialError(f"Service account credentials are not valid JSON: {e.msg}") from e

    if not isinstance(info, dict):
        raise CredentialError("Service account credentials must be a JSON object")

    issuer = (info.get("client_email") or "").strip()
    signing_key = info.get("private_key") or ""
    project_id = (info.get("project_id") or default_project_id or "").strip()

    missing = [
        name for name, value in (
            ("client_email", issuer),
            ("private_key", signing_key.strip()),
            ("project_id", project_id),
        )
        if not value
    ]
    if missing:
        raise CredentialError(f"Service account credentials missing: {', '.join(missing)}")

    return Credential(
        issuer_identity=issuer,
        signing_key_pem=signing_key,
        project_id=project_id,
        private_key_id=info.get("private_key_id") or None,
    )
