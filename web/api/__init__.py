"""FastAPI backend for 3 Sisters online play."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from web.api.routes import rooms
from web.api.session_manager import RoomManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan."""
    logger.info("Room manager ready")
    yield
    logger.info(f"Shutting down with {len(app.state.room_manager.rooms)} open rooms")


def create_app(room_manager: RoomManager | None = None) -> FastAPI:
    """Build the API application around one room manager."""
    app = FastAPI(
        title="3 Sisters API",
        description="Rooms and real-time play for the 3 Sisters card game",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.room_manager = room_manager or RoomManager()

    # Configure CORS for frontend
    cors_origins = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Add production frontend URL if set
    prod_url = os.environ.get("FRONTEND_URL")
    if prod_url:
        cors_origins.append(prod_url)

    logger.info(f"CORS origins configured: {cors_origins}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(rooms.router, prefix="/api")
    return app


app = create_app()
