"""
FastAPI application entry point for SpeakUp Triage
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException

from app.logging_config import logger, setup_logging
from app.routes import analytics, notifications, triage
from app.state import AppState, get_state, set_state


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    setup_logging()
    logger.info("SpeakUp Triage starting up")
    state = AppState()
    set_state(state)
    await state.startup()

    yield

    # Shutdown
    logger.info("SpeakUp Triage shutting down")
    await state.shutdown()
    set_state(None)


app = FastAPI(
    title="SpeakUp Triage",
    description="Complaint urgency triage, analytics and notification ledger",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(triage.router)
app.include_router(analytics.router)
app.include_router(notifications.router)


@app.get("/")
async def root():
    """Health check endpoint"""
    return {"message": "SpeakUp Triage is running", "status": "healthy"}


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring"""
    try:
        scheduler = get_state().scheduler.get_status()
    except HTTPException:
        scheduler = None
    return {"status": "healthy", "service": "speakup-triage", "scheduler": scheduler}
