"""
Dialogflow ES detectIntent client.

Performs one detectIntent call per turn over REST and extracts the fields
the connector needs. The inbound context set is forwarded untouched; the
agent decides which contexts it recognises.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError as PydanticValidationError

from core.auth.token_minter import AccessToken
from core.errors import BackendError, TransportError
from models.schemas import ConversationContext, DetectIntentResult, Turn

logger = logging.getLogger(__name__)

DIALOGFLOW_API_BASE = "https://dialogflow.googleapis.com/v2"
NO_RESPONSE_TEXT = "No response from Dialogflow."
UNKNOWN_INTENT = "UNKNOWN"


def session_path(project_id: str, session_id: str) -> str:
    """Hierarchical session name used by Dialogflow for contexts"""
    return f"projects/{project_id}/agent/sessions/{session_id}"


class DialogflowClient:
    """Synchronous REST client for the detectIntent method"""

    def __init__(
        self,
        http: Optional[requests.Session] = None,
        api_base: str = DIALOGFLOW_API_BASE,
        timeout: float = 30,
    ):
        # plain requests.post unless a session is injected
        self.http = http or requests
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    def build_request(self, turn: Turn) -> Dict[str, Any]:
        """Build the detectIntent request body for a turn"""
        if turn.utterance.strip():
            query_input = {"text": {"text": turn.utterance, "languageCode": turn.language_code}}
        else:
            query_input = {"event": {"name": turn.event_name, "languageCode": turn.language_code}}

        body: Dict[str, Any] = {"queryInput": query_input}
        if turn.inbound_contexts:
            body["queryParams"] = {
                "contexts": [context.model_dump() for context in turn.inbound_contexts]
            }
        return body

    def detect_intent(self, token: AccessToken, project_id: str, turn: Turn) -> DetectIntentResult:
        """
        Send one turn to Dialogflow.

        Args:
            token: Bearer token for this turn
            project_id: Dialogflow agent project
            turn: The inbound turn

        Returns:
            Parsed detectIntent result

        Raises:
            BackendError: On a non-2xx response
            TransportError: If Dialogflow cannot be reached
        """
        url = f"{self.api_base}/{session_path(quote(project_id, safe=''), quote(turn.session_id, safe=''))}:detectIntent"

        try:
            response = self.http.post(
                url,
                json=self.build_request(turn),
                headers={"Authorization": f"{token.token_type} {token.token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"❌ Network error calling Dialogflow: {e}")
            raise TransportError(f"Could not reach Dialogflow: {e}") from e

        if not 200 <= response.status_code < 300:
            message = self._error_message(response)
            logger.error(f"❌ Dialogflow error {response.status_code}: {message}")
            raise BackendError(response.status_code, message)

        try:
            payload = response.json()
        except ValueError as e:
            raise BackendError(response.status_code, "Response body is not valid JSON") from e

        return self.parse_result(payload)

    @staticmethod
    def parse_result(payload: Dict[str, Any]) -> DetectIntentResult:
        """Extract the fields of queryResult, applying defaults for absent ones"""
        result = payload.get("queryResult") or {}

        fulfillment_text = result.get("fulfillmentText") or NO_RESPONSE_TEXT
        intent_name = (result.get("intent") or {}).get("displayName") or UNKNOWN_INTENT

        confidence = result.get("intentDetectionConfidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            confidence = 0.0
        confidence = min(max(float(confidence), 0.0), 1.0)

        contexts = []
        for raw in result.get("outputContexts") or []:
            try:
                contexts.append(ConversationContext.model_validate(raw))
            except PydanticValidationError:
                logger.warning(f"Skipping malformed output context from Dialogflow: {raw!r}")

        return DetectIntentResult(
            fulfillment_text=fulfillment_text,
            intent_name=intent_name,
            confidence=confidence,
            output_contexts=contexts,
        )

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            error = response.json().get("error") or {}
            if isinstance(error, dict) and error.get("message"):
                return error["message"]
        except (ValueError, AttributeError):
            pass
        return response.text[:200] or response.reason or "Unknown error"
