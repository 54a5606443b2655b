"""
Conversation handling for the bot connector.

This package provides:
- The fallback escalation ledger carried in conversation contexts
- The middleware pipeline wrapping each turn
- The per-turn orchestrator
"""

from .ledger import (
    ContextMatch,
    EscalationPolicy,
    LedgerOutcome,
    apply_escalation,
)
from .pipeline import (
    Middleware,
    LoggingMiddleware,
    ValidationMiddleware,
    MiddlewarePipeline,
)
from .orchestrator import TurnOrchestrator

__all__ = [
    # Ledger
    'ContextMatch',
    'EscalationPolicy',
    'LedgerOutcome',
    'apply_escalation',

    # Pipeline
    'Middleware',
    'LoggingMiddleware',
    'ValidationMiddleware',
    'MiddlewarePipeline',

    # Orchestration
    'TurnOrchestrator',
]
