"""FastAPI application for the bot connector to Dialogflow adapter"""
import logging
from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables
load_dotenv()

from config import settings
from api.routes import bot_connector

# Setup logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Create FastAPI app
app = FastAPI(
    title="Bot Connector Dialogflow Adapter",
    version="1.0.0",
    description="Relays bot connector turns to Dialogflow with fallback escalation",
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None,
)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


@app.get("/api")
async def api_root():
    """API root endpoint"""
    return {
        "message": "Bot Connector Dialogflow Adapter",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
        "credentials_configured": bool(settings.DIALOGFLOW_CREDENTIALS),
    }


# Include routers
app.include_router(bot_connector.router, prefix="/api", tags=["bot-connector"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
