import asyncio
import logging

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import assistant, auth, jobs, listings, maps, notifications, proposals, websocket
from app.api.websocket import ws_listener
from app.config import settings
from app.services.ai_assistant import build_llm_client

# Configure structured logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(settings.log_level)
    ),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)
logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

logger = structlog.get_logger()

app = FastAPI(
    title="JobMate - Local Services Marketplace",
    description="Jobs, proposals, marketplace listings, map data and the in-app assistant",
    version="1.0.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One LLM client per process
app.state.llm = build_llm_client(settings)

# Include routers
app.include_router(auth.router)
app.include_router(jobs.router)
app.include_router(proposals.router)
app.include_router(notifications.router)
app.include_router(maps.router)
app.include_router(listings.router)
app.include_router(assistant.router)
app.include_router(websocket.router)


@app.on_event("startup")
async def startup():
    logger.info("JobMate backend starting up", llm_enabled=app.state.llm.enabled)
    # Start WebSocket Redis listener
    app.state.ws_listener = asyncio.create_task(ws_listener())


@app.on_event("shutdown")
async def shutdown():
    logger.info("JobMate backend shutting down")
    task = getattr(app.state, "ws_listener", None)
    if task is not None:
        task.cancel()


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
