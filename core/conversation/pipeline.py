"""
Middleware components for the turn pipeline.

Cross-cutting concerns (logging, input validation) wrap the core turn
handler. Middleware never swallows errors: a failure in any stage fails the
whole turn.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, List

from core.errors import ValidationError
from models.schemas import Turn, TurnResult

logger = logging.getLogger(__name__)

TurnHandler = Callable[[Turn], TurnResult]


class Middleware(ABC):
    """Abstract base class for pipeline middleware"""

    @abstractmethod
    def process(self, turn: Turn, next_handler: TurnHandler) -> TurnResult:
        """
        Process a turn and call the next handler in the chain.

        Args:
            turn: Turn being processed
            next_handler: Next middleware or final handler

        Returns:
            Result of the turn
        """
        pass


class LoggingMiddleware(Middleware):
    """Logs turn processing steps"""

    def __init__(self, log_level: int = logging.INFO):
        self.log_level = log_level

    def process(self, turn: Turn, next_handler: TurnHandler) -> TurnResult:
        logger.log(
            self.log_level,
            "Processing turn",
            extra={
                "session_id": turn.session_id,
                "message_preview": turn.utterance[:50],
                "event_name": turn.event_name,
                "inbound_contexts": len(turn.inbound_contexts),
            }
        )

        start_time = time.time()
        try:
            result = next_handler(turn)
        except Exception as e:
            logger.log(
                self.log_level,
                f"Turn failed: {type(e).__name__}",
                extra={
                    "session_id": turn.session_id,
                    "processing_time_ms": (time.time() - start_time) * 1000,
                }
            )
            raise
        processing_time = (time.time() - start_time) * 1000

        logger.log(
            self.log_level,
            "Turn processed",
            extra={
                "session_id": turn.session_id,
                "intent": result.matched_intent,
                "confidence": result.confidence,
                "bot_state": result.conversation_state.bot_state,
                "processing_time_ms": processing_time,
            }
        )

        return result


class ValidationMiddleware(Middleware):
    """Rejects malformed turns before any credential or network work"""

    # Dialogflow ES rejects longer text inputs
    MAX_UTTERANCE_LENGTH = 256

    def process(self, turn: Turn, next_handler: TurnHandler) -> TurnResult:
        errors = []

        if not turn.session_id or not turn.session_id.strip():
            errors.append("botSessionId is required")

        if not turn.utterance.strip() and not turn.event_name:
            errors.append("No user message found")
        elif len(turn.utterance) > self.MAX_UTTERANCE_LENGTH:
            errors.append(f"Message too long (max {self.MAX_UTTERANCE_LENGTH} characters)")

        if errors:
            logger.warning(f"Validation failed: {'; '.join(errors)}", extra={"session_id": turn.session_id})
            raise ValidationError("; ".join(errors))

        return next_handler(turn)


class MiddlewarePipeline:
    """Manages a pipeline of middleware"""

    def __init__(self):
        self.middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> 'MiddlewarePipeline':
        """Add middleware to pipeline"""
        self.middleware.append(middleware)
        return self

    def build(self, final_handler: TurnHandler) -> TurnHandler:
        """Build the middleware chain"""
        def create_handler(middleware: Middleware, next_handler: TurnHandler) -> TurnHandler:
            return lambda turn: middleware.process(turn, next_handler)

        # Build chain in reverse order
        handler = final_handler
        for mw in reversed(self.middleware):
            handler = create_handler(mw, handler)

        return handler
