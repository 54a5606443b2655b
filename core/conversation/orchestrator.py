"""
Per-turn controller.

Sequences validation, credential loading, token minting, the detectIntent
call and the escalation ledger, and assembles the reply for the bot
connector. Each orchestrator serves a single request; nothing outlives it.
"""

import logging
from typing import Optional

from core.auth import TokenMinter, load_credential
from core.conversation.ledger import EscalationPolicy, apply_escalation
from core.conversation.pipeline import LoggingMiddleware, MiddlewarePipeline, ValidationMiddleware
from core.dialogflow import DialogflowClient, session_path
from models.schemas import (
    DEFAULT_LANGUAGE_CODE,
    BotConnectorRequest,
    BotConnectorResponse,
    Turn,
    TurnResult,
)

logger = logging.getLogger(__name__)


class TurnOrchestrator:
    """
    Turns one bot connector request into one bot connector response.

    The only conversational memory is what the caller sends in botContexts;
    the fallback counter travels there too.
    """

    def __init__(
        self,
        credentials_json: Optional[str],
        token_minter: Optional[TokenMinter] = None,
        dialogflow: Optional[DialogflowClient] = None,
        policy: Optional[EscalationPolicy] = None,
        default_language_code: str = DEFAULT_LANGUAGE_CODE,
        default_project_id: Optional[str] = None,
    ):
        self.credentials_json = credentials_json
        self.token_minter = token_minter or TokenMinter()
        self.dialogflow = dialogflow or DialogflowClient()
        self.policy = policy or EscalationPolicy()
        self.default_language_code = default_language_code
        self.default_project_id = default_project_id

        self.pipeline = (
            MiddlewarePipeline()
            .add(LoggingMiddleware())
            .add(ValidationMiddleware())
        )
        self._handler = self.pipeline.build(self.process_turn)

    @classmethod
    def from_settings(cls, settings) -> 'TurnOrchestrator':
        """Create an orchestrator wired from application settings"""
        return cls(
            credentials_json=settings.DIALOGFLOW_CREDENTIALS,
            token_minter=TokenMinter(
                token_uri=settings.TOKEN_URI,
                scope=settings.TOKEN_SCOPE,
                timeout=settings.REQUEST_TIMEOUT_SECONDS,
            ),
            dialogflow=DialogflowClient(
                api_base=settings.DIALOGFLOW_API_BASE,
                timeout=settings.REQUEST_TIMEOUT_SECONDS,
            ),
            policy=settings.escalation_policy,
            default_language_code=settings.DEFAULT_LANGUAGE_CODE,
            default_project_id=settings.GOOGLE_CLOUD_PROJECT_ID,
        )

    def build_turn(self, request: BotConnectorRequest) -> Turn:
        """Build a Turn from the inbound payload, applying defaults"""
        message = request.inputMessage
        return Turn(
            utterance=message.text or "",
            session_id=request.botSessionId or "",
            language_code=(request.languageCode or "").strip() or self.default_language_code,
            inbound_contexts=list(request.botContexts),
            event_name=(message.eventName or "").strip() or None,
        )

    def handle(self, request: BotConnectorRequest) -> BotConnectorResponse:
        """
        Process one bot connector request.

        Raises:
            ConnectorError: Any failure along the way; there is no partial result
        """
        turn = self.build_turn(request)
        result = self._handler(turn)
        return result.to_response()

    def process_turn(self, turn: Turn) -> TurnResult:
        """Core handler: credentials, token, detectIntent, escalation"""
        credential = load_credential(self.credentials_json, self.default_project_id)
        token = self.token_minter.mint(credential)
        backend_result = self.dialogflow.detect_intent(token, credential.project_id, turn)

        logger.info(
            f"Dialogflow matched '{backend_result.intent_name}' ({backend_result.confidence:.2f})",
            extra={"session_id": turn.session_id},
        )

        outcome = apply_escalation(
            turn.inbound_contexts,
            backend_result,
            session_path(credential.project_id, turn.session_id),
            self.policy,
        )

        return TurnResult(
            reply_text=outcome.reply_text,
            matched_intent=backend_result.intent_name,
            confidence=backend_result.confidence,
            outbound_contexts=outcome.outbound_contexts,
            conversation_state=outcome.conversation_state,
        )
