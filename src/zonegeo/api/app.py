# src/zonegeo/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance and starts the (slow) dataset load in the
background at startup. Endpoints live in `zonegeo.api.routes`.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from zonegeo.config.settings import get_settings
from zonegeo.core.logging import configure_logging

from . import routes

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if get_settings().dataset.prefetch_on_startup:
        logger.info("Prefetching zone dataset in the background")
        routes._handle().prefetch()
    yield


app = FastAPI(title="ZoneGeo API", version="0.1.0", lifespan=lifespan)

# CORS: configure via env, e.g.
# - ZONEGEO_CORS_ORIGINS="http://localhost:8003,http://127.0.0.1:8003"
cors_origins = [s.strip() for s in os.getenv("ZONEGEO_CORS_ORIGINS", "").split(",") if s.strip()]
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

app.include_router(routes.router)
