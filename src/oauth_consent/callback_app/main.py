"""
Demo Callback Application

Stands in for the requesting application during local development: it
receives the final consent redirect and prints the authorization code and
state to the console.
"""

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from typing import Optional

from ..shared.config import CONSENT_CONFIG
from ..shared.logging_utils import OAuthLogger

app = FastAPI(
    title="Demo Callback Application",
    description="Receives authorization codes from the consent application",
    version="1.0.0"
)

logger = OAuthLogger("CALLBACK-APP")


@app.get("/callback", response_class=PlainTextResponse)
async def oauth_callback(code: Optional[str] = None, state: Optional[str] = None):
    """Print the received authorization code and state."""
    # Printed in full so the code can be copied for the token exchange
    logger.log_info("Authorization Callback Received", {"code": code, "state": state})

    return "Auth successful! Check your console."


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "demo-callback-app"}


if __name__ == "__main__":
    import uvicorn
    logger.log_startup(CONSENT_CONFIG["callback_port"])
    uvicorn.run(app, host="0.0.0.0", port=CONSENT_CONFIG["callback_port"])
