"""
Fallback escalation ledger.

Tracks how many consecutive turns the agent failed to understand, using a
counter context that the caller echoes back on every turn. No state is kept
in the process: the outcome is a pure function of the inbound contexts and
the backend result.

States are implicit in the counter and the matched intent:

    non-fallback intent              -> counter reset (expired if present), CONTINUE
    fallback, count < threshold - 1  -> counter + 1, "please rephrase", CONTINUE
    fallback, count >= threshold - 1 -> counter expired, hand-off message, COMPLETE
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional

from models.schemas import ConversationContext, ConversationState, DetectIntentResult

logger = logging.getLogger(__name__)

COUNT_PARAMETER = "count"

REPHRASE_TEXT = "I'm sorry, I didn't quite understand that. Could you please rephrase?"
ESCALATION_TEXT = (
    "I'm sorry, I'm unable to help with that. "
    "Please contact a human agent for further assistance."
)


class ContextMatch(str, Enum):
    """How the counter context is recognised among other contexts"""
    SUFFIX = "suffix"  # trailing label only, any project/session prefix
    EXACT = "exact"    # full path under the current session


@dataclass(frozen=True)
class EscalationPolicy:
    """Tunable constants of the escalation state machine"""
    fallback_intent: str = "Default Fallback Intent"
    threshold: int = 3
    counter_label: str = "fallback-counter"
    match: ContextMatch = ContextMatch.SUFFIX
    rephrase_text: str = REPHRASE_TEXT
    escalation_text: str = ESCALATION_TEXT

    def counter_name(self, session_path: str) -> str:
        return f"{session_path}/contexts/{self.counter_label}"

    def matches(self, context_name: str, session_path: str) -> bool:
        """Check whether a context name refers to the fallback counter"""
        if self.match is ContextMatch.EXACT:
            return context_name == self.counter_name(session_path)
        return context_name == self.counter_label or context_name.endswith("/" + self.counter_label)


@dataclass
class LedgerOutcome:
    """Result of applying the escalation policy to one turn"""
    reply_text: str
    outbound_contexts: List[ConversationContext] = field(default_factory=list)
    fallback_count: int = 0
    conversation_state: ConversationState = ConversationState.CONTINUE


def parse_count(value: Any) -> int:
    """
    Read a counter value as a non-negative integer.

    Accepts ints, integral floats (Dialogflow returns numbers as floats) and
    ASCII digit strings. Anything else counts as 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value if value >= 0 else 0
    if isinstance(value, float):
        return int(value) if value.is_integer() and value >= 0 else 0
    if isinstance(value, str):
        value = value.strip()
        if value.isascii() and value.isdigit():
            return int(value)
        try:
            number = float(value)
        except ValueError:
            return 0
        return int(number) if number.is_integer() and number >= 0 else 0
    return 0


def find_counter(
    contexts: Iterable[ConversationContext],
    session_path: str,
    policy: EscalationPolicy,
) -> Optional[ConversationContext]:
    """Return the first context matching the counter label, if any"""
    for context in contexts:
        if policy.matches(context.name, session_path):
            return context
    return None


def _counter_context(name: str, lifespan: int, count: int) -> ConversationContext:
    return ConversationContext(
        name=name,
        lifespanCount=lifespan,
        parameters={COUNT_PARAMETER: str(count)},
    )


def apply_escalation(
    inbound_contexts: List[ConversationContext],
    result: DetectIntentResult,
    session_path: str,
    policy: EscalationPolicy = EscalationPolicy(),
) -> LedgerOutcome:
    """
    Apply the fallback escalation policy to a backend result.

    Args:
        inbound_contexts: Contexts echoed back by the caller this turn
        result: Raw detectIntent result
        session_path: Session the turn belongs to
        policy: Escalation constants

    Returns:
        Reply text, outbound contexts, new counter value and conversation state
    """
    existing = (
        find_counter(inbound_contexts, session_path, policy)
        or find_counter(result.output_contexts, session_path, policy)
    )

    # at most one counter may leave this function
    outbound = [
        context for context in result.output_contexts
        if not policy.matches(context.name, session_path)
    ]

    if result.intent_name != policy.fallback_intent:
        if existing is not None:
            outbound.append(_counter_context(existing.name, 0, 0))
            logger.info(f"Fallback counter reset after intent '{result.intent_name}'")
        return LedgerOutcome(
            reply_text=result.fulfillment_text,
            outbound_contexts=outbound,
            fallback_count=0,
            conversation_state=ConversationState.CONTINUE,
        )

    count = parse_count(existing.parameters.get(COUNT_PARAMETER)) if existing is not None else 0
    name = existing.name if existing is not None else policy.counter_name(session_path)
    new_count = count + 1

    if count >= policy.threshold - 1:
        logger.warning(
            f"Escalating after {new_count} consecutive fallback turns",
            extra={"session_path": session_path, "fallback_count": new_count},
        )
        outbound.append(_counter_context(name, 0, new_count))
        return LedgerOutcome(
            reply_text=policy.escalation_text,
            outbound_contexts=outbound,
            fallback_count=new_count,
            conversation_state=ConversationState.COMPLETE,
        )

    outbound.append(_counter_context(name, 1, new_count))
    return LedgerOutcome(
        reply_text=policy.rephrase_text,
        outbound_contexts=outbound,
        fallback_count=new_count,
        conversation_state=ConversationState.CONTINUE,
    )
