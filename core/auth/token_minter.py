"""
Bearer token minting for Google APIs.

Builds an RS256-signed JWT assertion from the service account credential and
exchanges it at the OAuth token endpoint under the JWT-bearer grant. A new
assertion and token are produced for every turn; nothing is cached.
"""

import base64
import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests
from google.auth import crypt

from core.auth.credentials import Credential
from core.errors import CredentialError, TokenExchangeError, TransportError

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_LIFETIME_SECONDS = 3600


def base64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _encode_segment(value: Dict[str, Any]) -> str:
    return base64url_encode(json.dumps(value, separators=(",", ":")).encode("utf-8"))


@dataclass(frozen=True)
class AccessToken:
    """Bearer token scoped to a single turn"""
    token: str
    token_type: str = "Bearer"
    expires_in: Optional[int] = None


class TokenMinter:
    """Signs assertions and exchanges them for access tokens"""

    def __init__(
        self,
        http: Optional[requests.Session] = None,
        token_uri: str = TOKEN_URI,
        scope: str = CLOUD_PLATFORM_SCOPE,
        timeout: float = 30,
        clock: Callable[[], float] = time.time,
    ):
        # plain requests.post unless a session is injected
        self.http = http or requests
        self.token_uri = token_uri
        self.scope = scope
        self.timeout = timeout
        self.clock = clock

    def build_assertion(self, credential: Credential) -> str:
        """
        Build and sign a JWT assertion for the token exchange.

        Args:
            credential: Service account credential

        Returns:
            Compact header.claims.signature assertion

        Raises:
            CredentialError: If the private key cannot be loaded
        """
        try:
            signer = crypt.RSASigner.from_string(credential.signing_key_pem)
        except Exception as e:
            raise CredentialError(f"Service account private key is malformed: {e}") from e

        issued_at = int(self.clock())
        header = {"alg": "RS256", "typ": "JWT"}
        if credential.private_key_id:
            header["kid"] = credential.private_key_id
        claims = {
            "iss": credential.issuer_identity,
            "aud": self.token_uri,
            "scope": self.scope,
            "iat": issued_at,
            "exp": issued_at + ASSERTION_LIFETIME_SECONDS,
            "jti": uuid.uuid4().hex,
        }

        signing_input = f"{_encode_segment(header)}.{_encode_segment(claims)}"
        signature = signer.sign(signing_input.encode("ascii"))
        return f"{signing_input}.{base64url_encode(signature)}"

    def exchange(self, assertion: str) -> AccessToken:
        """
        Exchange a signed assertion for an access token.

        Raises:
            TokenExchangeError: If the provider rejects the assertion
            TransportError: If the token endpoint cannot be reached or its reply is unreadable
        """
        try:
            response = self.http.post(
                self.token_uri,
                data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"❌ Network error during token exchange: {e}")
            raise TransportError(f"Could not reach token endpoint: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"❌ Unreadable token endpoint response ({response.status_code})")
            raise TransportError(
                f"Token endpoint returned {response.status_code} with a non-JSON body"
            ) from e

        if not isinstance(payload, dict):
            raise TokenExchangeError(f"Token endpoint returned {response.status_code} with an unexpected body")

        if payload.get("error"):
            description = str(payload.get("error_description") or payload["error"])
            logger.error(f"❌ Token exchange rejected: {description}")
            raise TokenExchangeError(description, error_code=str(payload["error"]))

        access_token = payload.get("access_token")
        if not access_token:
            raise TokenExchangeError(f"Token endpoint returned {response.status_code} without an access token")

        return AccessToken(
            token=access_token,
            token_type=payload.get("token_type", "Bearer"),
            expires_in=payload.get("expires_in"),
        )

    def mint(self, credential: Credential) -> AccessToken:
        """Sign a fresh assertion and exchange it"""
        assertion = self.build_assertion(credential)
        token = self.exchange(assertion)
        logger.info(f"🔑 Access token minted for {credential.issuer_identity}")
        return token
