"""Configuration settings for the bot connector adapter"""
from typing import Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings

from core.conversation.ledger import ContextMatch, EscalationPolicy
from models.schemas import DEFAULT_LANGUAGE_CODE as DEFAULT_LANGUAGE

ENVIRONMENTS = ("dev", "staging", "prod")
ENVIRONMENT_ALIASES = {"development": "dev", "production": "prod"}


def environment_from_service(service_name: Optional[str]) -> str:
    """Infer the deployment tier from a Cloud Run service name"""
    service_name = (service_name or "").lower()
    if not service_name or "dev" in service_name:
        return "dev"
    if "staging" in service_name:
        return "staging"
    return "prod"


class Settings(BaseSettings):
    """Application settings using Pydantic for validation and environment variable loading"""

    # Service account key (JSON) used to mint Dialogflow access tokens
    DIALOGFLOW_CREDENTIALS: Optional[str] = None
    GOOGLE_CLOUD_PROJECT_ID: Optional[str] = None  # only used when the key has no project_id

    # Bot connector header credentials; gate disabled when both unset
    WORKER_USERNAME: Optional[str] = None
    WORKER_PASSWORD: Optional[str] = None

    # Google endpoints
    TOKEN_URI: str = "https://oauth2.googleapis.com/token"
    TOKEN_SCOPE: str = "https://www.googleapis.com/auth/cloud-platform"
    DIALOGFLOW_API_BASE: str = "https://dialogflow.googleapis.com/v2"
    REQUEST_TIMEOUT_SECONDS: float = 30

    # Conversation policy
    DEFAULT_LANGUAGE_CODE: str = DEFAULT_LANGUAGE
    FALLBACK_INTENT_NAME: str = "Default Fallback Intent"
    FALLBACK_THRESHOLD: int = 3
    FALLBACK_CONTEXT_LABEL: str = "fallback-counter"
    FALLBACK_CONTEXT_MATCH: ContextMatch = ContextMatch.SUFFIX

    # Application settings
    ENVIRONMENT: Optional[str] = None  # dev, staging or prod; inferred from K_SERVICE when unset
    K_SERVICE: Optional[str] = None  # set by Cloud Run
    LOG_LEVEL: str = "INFO"

    @model_validator(mode="after")
    def resolve_environment(self) -> "Settings":
        explicit = (self.ENVIRONMENT or "").strip().lower()
        explicit = ENVIRONMENT_ALIASES.get(explicit, explicit)
        self.ENVIRONMENT = explicit if explicit in ENVIRONMENTS else environment_from_service(self.K_SERVICE)
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "prod"

    @property
    def auth_enabled(self) -> bool:
        """Whether inbound requests must carry username/password headers"""
        return bool(self.WORKER_USERNAME or self.WORKER_PASSWORD)

    @property
    def escalation_policy(self) -> EscalationPolicy:
        """Fallback escalation constants"""
        return EscalationPolicy(
            fallback_intent=self.FALLBACK_INTENT_NAME,
            threshold=max(self.FALLBACK_THRESHOLD, 1),
            counter_label=self.FALLBACK_CONTEXT_LABEL,
            match=self.FALLBACK_CONTEXT_MATCH,
        )

    class Config:
        # Load from .env file
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
