"""HTTP route definitions for the service."""

from __future__ import annotations

from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.schemas import HealthResponse, ReadingRecord, SnapshotRecord
from models.errors import NotFoundError, StoreUnavailableError
from services.commands import (
    GET_CURRENT_SNAPSHOT,
    GET_LATEST_READING,
    GET_READING_WINDOW,
    LIST_READINGS,
)
from services.container import ServiceContainer
from services.dispatcher import CommandDispatcher

router = APIRouter()


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_dispatcher(container: ServiceContainer = Depends(get_container)) -> CommandDispatcher:
    return container.dispatcher


def _dispatch(dispatcher: CommandDispatcher, name: str, payload=None):
    try:
        return dispatcher.dispatch(name, payload)
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except StoreUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


@router.get(
    "/readings",
    response_model=List[ReadingRecord],
    summary="List every stored reading in chronological order.",
)
async def list_readings(
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> List[ReadingRecord]:
    readings = _dispatch(dispatcher, LIST_READINGS)
    return [ReadingRecord.from_reading(reading) for reading in readings]


@router.get(
    "/readings/latest",
    response_model=ReadingRecord,
    summary="Fetch the most recent reading.",
)
async def get_latest_reading(
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> ReadingRecord:
    return ReadingRecord.from_reading(_dispatch(dispatcher, GET_LATEST_READING))


@router.get(
    "/readings/window",
    response_model=List[ReadingRecord],
    summary="List readings taken within the trailing window.",
)
async def get_reading_window(
    minutes: Optional[float] = Query(
        None, gt=0, description="Window length in minutes; defaults to the configured recent window."
    ),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> List[ReadingRecord]:
    try:
        duration = timedelta(minutes=minutes) if minutes is not None else None
    except OverflowError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Window duration is too large."
        ) from exc
    readings = _dispatch(dispatcher, GET_READING_WINDOW, duration)
    return [ReadingRecord.from_reading(reading) for reading in readings]


@router.get(
    "/snapshot",
    response_model=SnapshotRecord,
    summary="Fetch the current short-window aggregate snapshot.",
)
async def get_current_snapshot(
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> SnapshotRecord:
    return SnapshotRecord.from_snapshot(_dispatch(dispatcher, GET_CURRENT_SNAPSHOT))


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(
    container: ServiceContainer = Depends(get_container),
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        scheduler_running=container.scheduler.running,
        skipped_ticks=container.scheduler.skipped_ticks,
    )


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
