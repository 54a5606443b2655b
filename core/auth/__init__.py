"""Service account credentials and bearer token minting"""

from .credentials import Credential, load_credential
from .token_minter import AccessToken, TokenMinter

__all__ = [
    'Credential',
    'load_credential',
    'AccessToken',
    'TokenMinter',
]
