"""
FastAPI Application for the Clinic Booking service.

Accepts one conversational turn of model output, dispatches its action
tokens through the clinic gateway and returns the structured results.
Also exposes read-only admin listings and a health check.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from config import settings
from core.data import StorageError
from use_cases.clinic import ActionDispatchGateway, create_gateway
from use_cases.clinic.data import create_document_store

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Reduce Azure SDK logging verbosity
logging.getLogger("azure.cosmos").setLevel(logging.WARNING)
logging.getLogger("azure.core").setLevel(logging.WARNING)
logging.getLogger("azure.identity").setLevel(logging.WARNING)

# Global instances
gateway: Optional[ActionDispatchGateway] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - handles startup and shutdown."""
    global gateway

    logger.info(f"Starting {settings.practice_name} booking service...")

    if gateway is None:
        store = create_document_store(settings.store_backend, settings.data_dir)
        logger.info(f"Document store initialized: {settings.store_backend}")
        gateway = create_gateway(store, settings)

    yield

    logger.info("Shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Clinic Booking",
    description="Action dispatch and booking orchestration for a dental practice assistant",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

# CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class TurnRequest(BaseModel):
    """One turn of model output to execute."""
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    text: str = Field(min_length=1)


def fallback_message() -> str:
    return (
        "I apologize, but I'm experiencing technical difficulties right now. Please:\n\n"
        "- Try again in a moment\n"
        f"- Call us directly at {settings.practice_phone}\n\n"
        "We're here to help!"
    )


def _server_error(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": message})


@app.post("/api/turns")
def handle_turn(request: TurnRequest):
    """
    Execute the action tokens in one turn.

    Unexpected faults never surface as errors; the caller gets an apology
    with the practice phone and ``escalated: true``.
    """
    conversation_id = request.conversation_id or f"conv_{uuid.uuid4().hex}"
    if gateway is None:
        return _server_error("Server not initialized")

    try:
        result = gateway.handle_turn(conversation_id, request.text)
    except Exception as e:
        logger.error(f"Error processing turn for {conversation_id}: {e}", exc_info=True)
        return {
            "conversationId": conversation_id,
            "text": fallback_message(),
            "results": [],
            "escalated": True,
        }

    return result.to_dict()


@app.get("/api/patients")
def list_patients():
    """All patients (for testing/admin)."""
    try:
        with gateway.unit_of_work() as uow:
            return [patient.to_dict() for patient in uow.directory.all()]
    except StorageError as e:
        logger.error(f"Failed to fetch patients: {e}", exc_info=True)
        return _server_error("Failed to fetch patients")


@app.get("/api/appointments")
def list_appointments():
    """All appointments including cancelled ones (for testing/admin)."""
    try:
        with gateway.unit_of_work() as uow:
            return [appointment.to_dict() for appointment in uow.ledger.all()]
    except StorageError as e:
        logger.error(f"Failed to fetch appointments: {e}", exc_info=True)
        return _server_error("Failed to fetch appointments")


@app.get("/api/emergency-alerts")
def list_emergency_alerts(status: Optional[str] = None):
    """Emergency alerts, optionally filtered by status (pending / resolved)."""
    try:
        return gateway.emergency.list_alerts(status)
    except StorageError as e:
        logger.error(f"Failed to fetch emergency alerts: {e}", exc_info=True)
        return _server_error("Failed to fetch emergency alerts")


@app.get("/api/sessions/stats")
def session_stats():
    """Conversation session counts (for monitoring)."""
    return gateway.sessions.stats()


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "use_case": "clinic_booking",
        "practice": settings.practice_name,
        "store_backend": settings.store_backend,
        "operations": gateway.operations_by_category() if gateway else {},
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=False,
        log_level=settings.log_level.lower()
    )
