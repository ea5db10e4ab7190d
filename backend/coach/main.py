import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from coach.routes import chat, health
from coach.services.session import session_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle events"""
    logger.info(f"Coach gateway relaying to {session_registry.backend.base_url}")

    yield

    # Shutdown: Cleanup resources
    await session_registry.cleanup()


app = FastAPI(
    title="Coach Chat Gateway",
    description="Streaming coach replies with exercise suggestion extraction",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware (useful for the mobile client in dev)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(chat.router, prefix="/api", tags=["chat"])
