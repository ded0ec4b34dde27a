"""
Transfer Tracker API - thin API with command dispatch.
Writes go through the message bus, reads are delegated to views.
"""
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator
import logging

import config
from transfers import views
from transfers.domain.commands import RecomputeTransfer, SubmitEvent
from transfers.domain.model import Status, as_utc
from transfers.service_layer import handlers, messagebus
from transfers.service_layer.unit_of_work import (
    AbstractTransferUnitOfWork,
    TransferRuntime,
    unit_of_work_factory,
)

# Configure logging
logging.basicConfig(level=config.get_log_level())
logger = logging.getLogger(__name__)


class TransferEventIn(BaseModel):
    """Inbound event payload, validated before it reaches the core"""
    transfer_id: str = Field(min_length=1)
    event_id: str = Field(min_length=1)
    status: Status
    timestamp: datetime
    reason: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def timestamp_as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class IngestionResponse(BaseModel):
    """Response model for event ingestion"""
    message: str
    transfer_id: str


def create_app(
    uow_factory: Callable[[], AbstractTransferUnitOfWork] = None,
) -> FastAPI:
    """
    Build the API around a unit of work factory.

    Every request gets a fresh unit of work, all of them share the same
    TransferRuntime (cache, version, locks).
    """
    if uow_factory is None:
        uow_factory = unit_of_work_factory(TransferRuntime())

    app = FastAPI(
        title="Transfer Tracker API",
        description="Event-sourced transfer status tracking with anomaly detection",
        version="1.0.0"
    )

    handlers.warm_cache(uow_factory())

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"Request method={request.method} path={request.url.path} "
            f"status={response.status_code} duration_ms={duration_ms:.1f}"
        )
        return response

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "transfer-tracker-api",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    @app.post("/events", response_model=IngestionResponse, status_code=201)
    def ingest_event(event: TransferEventIn, response: Response):
        """
        Ingest one transfer lifecycle event.

        201 when the event is new, 200 when its event_id was already seen
        for this transfer (idempotent skip, nothing changed).
        """
        cmd = SubmitEvent(
            transfer_id=event.transfer_id,
            event_id=event.event_id,
            status=event.status,
            timestamp=event.timestamp,
            reason=event.reason,
        )
        [result] = messagebus.handle(cmd, uow_factory())

        if not result.accepted:
            response.status_code = 200
            return IngestionResponse(message="Duplicate event, skipped", transfer_id=event.transfer_id)

        return IngestionResponse(message="Event processed", transfer_id=event.transfer_id)

    @app.get("/transfers")
    def list_transfers(status: Optional[Status] = None, has_warnings: Optional[bool] = None):
        """List transfers, filters combine with AND. No pagination."""
        result = views.list_transfers(uow_factory(), status=status, has_warnings=has_warnings)
        return {
            "items": [t.to_dict() for t in result["items"]],
            "total": result["total"],
        }

    @app.get("/transfers/{transfer_id}")
    def get_transfer(transfer_id: str):
        transfer = views.get_transfer(transfer_id, uow_factory())
        if transfer is None:
            raise HTTPException(status_code=404, detail=f"Transfer {transfer_id} not found")
        return transfer.to_dict()

    @app.post("/transfers/{transfer_id}/recompute")
    def recompute_transfer(transfer_id: str):
        """Force re-derivation from the stored history without resubmitting events."""
        [transfer] = messagebus.handle(RecomputeTransfer(transfer_id=transfer_id), uow_factory())
        if transfer is None:
            raise HTTPException(status_code=404, detail=f"Transfer {transfer_id} not found")
        return transfer.to_dict()

    @app.get("/version")
    def poll_version():
        """Version plus transfer_ids changed since the previous poll (drains them)."""
        return views.poll_changes(uow_factory())

    return app


app = create_app()


def main():
    uvicorn.run(app, host="0.0.0.0", port=config.get_api_port())


if __name__ == "__main__":
    main()
