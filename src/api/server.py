#!/usr/bin/env python
"""FastAPI server for the channelchat web interface."""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Add src directory to Python path for imports
src_dir = Path(__file__).parent.parent
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import close_services
from api.routers import channels, chat, images
from api.schemas import HealthResponse, RootResponse
from utils.config import load_config, validate_config
from utils.logging import setup_logging

config = load_config()
setup_logging(config["log_level"], json_output=config["log_json"])
logger = logging.getLogger(__name__)

for problem in validate_config(config):
    logger.warning(f"Configuration: {problem}")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    await close_services()


app = FastAPI(title="channelchat API", version="1.0.0", lifespan=lifespan)

# CORS middleware for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=config["cors_origins"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(channels.router)
app.include_router(chat.router)
app.include_router(images.router)


@app.get("/", response_model=RootResponse)
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "channelchat API", "version": "1.0.0"}


@app.get("/api/health", response_model=HealthResponse)
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
