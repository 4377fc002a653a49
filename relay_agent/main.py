"""
FastAPI server for the Twilio ConversationRelay coaching agent.

This module initializes and configures the FastAPI application that Twilio calls
when a phone call comes in. The /twiml endpoint answers the call with a
ConversationRelay instruction pointing back at this server's /ws endpoint, where
each call streams transcribed speech in and text replies out.

The server wires one TurnEngine shared by all calls and tears it down on shutdown.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from xml.sax.saxutils import quoteattr

import dotenv
from fastapi import FastAPI, Response, WebSocket

from relay_agent.bot.turn_engine import build_turn_engine
from relay_agent.config.logging_config import configure_logging
from relay_agent.config.settings import Settings
from relay_agent.websocket_manager import WebSocketManager

# Load environment variables from .env file if it exists
env_path = Path(".") / ".env"
if env_path.exists():
    dotenv.load_dotenv(env_path)

settings = Settings.from_env()
logger = configure_logging(settings.log_level, settings.log_file)

turn_engine = build_turn_engine(settings)
websocket_manager = WebSocketManager(turn_engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"ConversationRelay WebSocket URL: {settings.websocket_url}")
    yield
    await turn_engine.aclose()
    logger.info("Turn engine closed")


app = FastAPI(
    title="Relay Agent",
    description="Voice coaching agent for Twilio ConversationRelay",
    version="1.0.0",
    lifespan=lifespan,
)


def render_twiml(websocket_url: str, welcome_greeting: str) -> str:
    """Build the TwiML document that connects a call to ConversationRelay."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        "<Response>\n"
        "  <Connect>\n"
        f"    <ConversationRelay url={quoteattr(websocket_url)} "
        f"welcomeGreeting={quoteattr(welcome_greeting)} />\n"
        "  </Connect>\n"
        "</Response>"
    )


@app.api_route("/twiml", methods=["GET", "POST"])
async def twiml():
    """TwiML webhook for incoming calls.

    Twilio requests this endpoint when a call arrives; the response tells it to
    open a ConversationRelay session against /ws and to greet the caller.
    """
    document = render_twiml(
        settings.websocket_url, turn_engine.prompts.welcome_greeting()
    )
    return Response(content=document, media_type="text/xml")


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for Twilio ConversationRelay.

    One connection carries one call: a setup message, then prompt, interrupt,
    dtmf and error messages until the call ends. Replies are sent back as text
    token messages.
    """
    await websocket_manager.handle_websocket(websocket)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring system status.

    Returns:
        dict: Status information indicating the server is operational.
    """
    return {
        "status": "healthy",
        "openai_api_key_configured": bool(settings.openai_api_key),
        "active_calls": len(turn_engine.active_calls()),
    }


@app.get("/")
async def root():
    """Root endpoint to display basic information about the API."""
    return {
        "name": "Relay Agent",
        "description": "Voice coaching agent for Twilio ConversationRelay",
        "version": "1.0.0",
        "endpoints": {
            "/twiml": "TwiML webhook for incoming calls",
            "/ws": "WebSocket endpoint for Twilio ConversationRelay",
            "/health": "Health check endpoint",
        },
    }


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on http://{settings.host}:{settings.port}")
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        websocket_ping_interval=5,
        websocket_ping_timeout=20,
        http="h11",
    )
