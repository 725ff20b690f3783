"""CORS for the web client."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eventhub.config import Settings


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the configured origins. A "*" origin drops credentials, as browsers require."""
    wildcard = "*" in settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if wildcard else settings.cors_origins,
        allow_credentials=not wildcard,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
        expose_headers=["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit", "Retry-After"],
    )
