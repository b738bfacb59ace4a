from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tariffcalc import __version__
from tariffcalc.api.routes_tariff import router as tariff_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="tariffcalc API", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(tariff_router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "version": __version__}

    logger.info("tariffcalc API ready")
    return app


app = create_app()
