"""
Error taxonomy for the bot connector.

Every error a turn can fail with derives from ConnectorError and carries the
HTTP status it maps to at the API boundary. None of them are retried.
"""

from typing import Optional


class ConnectorError(Exception):
    """Base class for all turn-level failures"""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(ConnectorError):
    """Inbound turn rejected before any backend call"""

    status_code = 400


class CredentialError(ConnectorError):
    """Credential bundle missing, unparsable, incomplete, or key malformed"""


class TokenExchangeError(ConnectorError):
    """Identity provider rejected the signed assertion"""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code


class BackendError(ConnectorError):
    """NLU backend answered with a non-success status"""

    def __init__(self, backend_status: int, message: str):
        super().__init__(f"Dialogflow returned {backend_status}: {message}")
        self.backend_status = backend_status
        self.backend_message = message


class TransportError(ConnectorError):
    """Network failure reaching the identity provider or the backend"""
