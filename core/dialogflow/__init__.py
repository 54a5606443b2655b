"""Dialogflow NLU backend client"""

from .client import DialogflowClient, session_path

__all__ = [
    'DialogflowClient',
    'session_path',
]
