"""
Bot connector endpoint.

Receives one turn from the bot connector, runs it through the orchestrator
and returns the reply in the connector's expected shape.
"""

from fastapi import APIRouter, Depends, Header, HTTPException
from typing import Optional
import logging
import secrets

from config import settings
from core.conversation import TurnOrchestrator
from core.errors import ConnectorError
from models.schemas import BotConnectorRequest, BotConnectorResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def verify_worker_credentials(
    username: Optional[str] = Header(default=None),
    password: Optional[str] = Header(default=None),
) -> None:
    """Check the static username/password headers sent by the bot connector"""
    if not settings.auth_enabled:
        return

    expected_username = settings.WORKER_USERNAME or ""
    expected_password = settings.WORKER_PASSWORD or ""
    username_ok = secrets.compare_digest((username or "").encode(), expected_username.encode())
    password_ok = secrets.compare_digest((password or "").encode(), expected_password.encode())

    if not (username_ok and password_ok):
        logger.warning("Rejected bot connector request with invalid credentials")
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_orchestrator() -> TurnOrchestrator:
    """A fresh orchestrator per request"""
    return TurnOrchestrator.from_settings(settings)


@router.post(
    "/bot-connector",
    response_model=BotConnectorResponse,
    dependencies=[Depends(verify_worker_credentials)],
)
def bot_connector_endpoint(
    request: BotConnectorRequest,
    orchestrator: TurnOrchestrator = Depends(get_orchestrator),
):
    """
    Handle one bot connector turn.

    Token exchange and detectIntent block, so this runs in the threadpool.
    """
    try:
        return orchestrator.handle(request)

    except ConnectorError as e:
        if e.status_code < 500:
            logger.warning(f"Turn rejected: {e}", extra={"session_id": request.botSessionId})
        else:
            logger.error(
                f"Error processing turn: {type(e).__name__}: {e}",
                extra={"session_id": request.botSessionId},
            )
        raise HTTPException(status_code=e.status_code, detail=f"Error: {e}")

    except Exception as e:
        logger.error(
            f"Unexpected error processing turn: {str(e)}",
            extra={"session_id": request.botSessionId},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail=f"Error: {e}")
