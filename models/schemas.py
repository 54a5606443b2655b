"""Data models for the bot connector adapter"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from dataclasses import dataclass, field
from enum import Enum

DEFAULT_LANGUAGE_CODE = "en-US"


class ConversationState(str, Enum):
    """Whether the bot expects another turn after this one"""
    CONTINUE = "continue"
    COMPLETE = "complete"

    @property
    def bot_state(self) -> str:
        """Value in the bot connector's two-valued botState vocabulary"""
        return "COMPLETE" if self is ConversationState.COMPLETE else "MOREDATA"


class ConversationContext(BaseModel):
    """A named, lifespan-counted piece of conversational state.

    Same shape on the bot connector side and on the Dialogflow side, so
    contexts pass through in both directions without translation.
    """
    name: str
    lifespanCount: int = Field(default=0, ge=0)
    parameters: Dict[str, Any] = Field(default_factory=dict)


class InputMessage(BaseModel):
    """The user's input for one turn"""
    type: Optional[str] = "Text"
    text: Optional[str] = None
    eventName: Optional[str] = None  # non-text initiation event, e.g. WELCOME


class BotConnectorRequest(BaseModel):
    """Inbound turn as posted by the bot connector"""
    inputMessage: InputMessage = Field(default_factory=InputMessage)
    languageCode: Optional[str] = None
    botSessionId: Optional[str] = None
    botContexts: List[ConversationContext] = Field(default_factory=list)


class ReplyMessage(BaseModel):
    """A single reply message"""
    type: str = "Text"
    text: str


class BotConnectorResponse(BaseModel):
    """Outbound reply in the bot connector's expected shape"""
    replymessages: List[ReplyMessage]
    intent: str
    confidence: float
    botContexts: List[ConversationContext] = Field(default_factory=list)
    botState: str


@dataclass
class Turn:
    """One request/response cycle, fully described by the inbound payload"""
    utterance: str
    session_id: str
    language_code: str
    inbound_contexts: List[ConversationContext] = field(default_factory=list)
    event_name: Optional[str] = None


@dataclass
class TurnResult:
    """Final outcome of a turn"""
    reply_text: str
    matched_intent: str
    confidence: float
    outbound_contexts: List[ConversationContext] = field(default_factory=list)
    conversation_state: ConversationState = ConversationState.CONTINUE

    def to_response(self) -> BotConnectorResponse:
        """Convert to the bot connector response payload"""
        return BotConnectorResponse(
            replymessages=[ReplyMessage(type="Text", text=self.reply_text)],
            intent=self.matched_intent,
            confidence=self.confidence,
            botContexts=self.outbound_contexts,
            botState=self.conversation_state.bot_state,
        )


@dataclass
class DetectIntentResult:
    """Raw NLU backend outcome, before the escalation policy is applied"""
    fulfillment_text: str
    intent_name: str
    confidence: float
    output_contexts: List[ConversationContext] = field(default_factory=list)
