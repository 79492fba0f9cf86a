"""FastAPI application factory for the tracker's HTTP surface."""

from __future__ import annotations

import asyncio
import secrets
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import APIRouter, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from etftracker.errors import SyncInProgressError
from etftracker.log import get_logger
from etftracker.tracker import EtfTracker

logger = get_logger(__name__)

router = APIRouter()


def get_tracker(request: Request) -> EtfTracker:
    return request.app.state.tracker


# ---------------------------------------------------------------- routes


@router.get("/etfs")
async def list_etfs(request: Request):
    """Stored snapshot; empty if no sync has completed yet."""
    return get_tracker(request).list_etfs().to_dict()


@router.get("/etf/{ticker}")
async def etf_detail(request: Request, ticker: str, extended: str | None = None):
    """On-demand detail. Missing data is reported in ``error`` with status 200."""
    symbol = ticker.strip().upper()
    if not symbol:
        raise HTTPException(status_code=400, detail="Symbol required")
    detail = await get_tracker(request).get_detail(symbol, extended=extended == "1")
    return detail.to_dict()


@router.post("/sync")
async def trigger_sync(request: Request, authorization: str | None = Header(default=None)):
    tracker = get_tracker(request)
    sync_key = tracker.config.sync_api_key
    expected = f"Bearer {sync_key}".encode()
    if sync_key and not secrets.compare_digest((authorization or "").encode(), expected):
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        snapshot = await tracker.sync()
    except SyncInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc) or type(exc).__name__) from exc
    return snapshot.to_dict()


@router.get("/health")
async def health(request: Request):
    return get_tracker(request).health()


# ------------------------------------------------------------ background


async def run_sync_logged(tracker: EtfTracker, trigger: str) -> None:
    """Run one sync for a background trigger, logging instead of raising."""
    try:
        snapshot = await tracker.sync()
    except SyncInProgressError:
        logger.info("sync_skipped_in_progress", trigger=trigger)
    except Exception as exc:
        logger.warning("background_sync_failed", trigger=trigger, error=str(exc))
    else:
        logger.info("background_sync_complete", trigger=trigger, count=snapshot.count)


async def sync_schedule(tracker: EtfTracker, interval_seconds: float) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        await run_sync_logged(tracker, "schedule")


# --------------------------------------------------------------- factory


def create_app(tracker: EtfTracker | None = None, *, background_sync: bool = True) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        tracker: Tracker to serve. Built from the environment when omitted.
        background_sync: Run the startup sync (only when no snapshot is
            stored) and the recurring schedule.
    """
    if tracker is None:
        from etftracker import create_tracker_from_env

        tracker = create_tracker_from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("api_starting", fmp_key_set=tracker.config.fmp_key_set)
        tasks: list[asyncio.Task] = []
        if background_sync:
            if tracker.list_etfs().count == 0:
                logger.info("initial_sync_scheduled")
                tasks.append(asyncio.create_task(run_sync_logged(tracker, "startup")))
            interval = tracker.config.sync_interval_seconds
            if interval > 0:
                tasks.append(asyncio.create_task(sync_schedule(tracker, interval)))

        yield

        logger.info("api_stopping")
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await tracker.aclose()

    app = FastAPI(
        title="Crypto ETF Tracker",
        description="Crypto exposure of exchange-traded funds",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.tracker = tracker

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    app.include_router(router, prefix="/api", tags=["ETFs"])
    return app
