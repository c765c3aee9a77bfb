# poolwatch/main.py
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from poolwatch.api import api
from poolwatch.config.settings import CORS_ORIGINS, LOG_LEVEL, UPDATE_INTERVAL
from poolwatch.services import Services, build_services
from poolwatch.sources.evm.client import NoRpcEndpointsError
from poolwatch.utils.log_utils import setup_logging

log = logging.getLogger(__name__)


def create_app(services: Optional[Services] = None, run_scheduler: bool = True) -> FastAPI:
    """
    Build the API app.

    Without `services` the real ones are wired at startup; a missing RPC
    configuration aborts startup. With `run_scheduler` the refresher runs
    once immediately and then every UPDATE_INTERVAL seconds.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # the CLI may already have set a level
        setup_logging(LOG_LEVEL, override=False)
        if app.state.services is None:
            try:
                app.state.services = build_services()
            except NoRpcEndpointsError as e:
                log.critical(f"❌ {e}")
                raise

        task = None
        if run_scheduler:
            task = asyncio.create_task(app.state.services.refresher.run_forever(UPDATE_INTERVAL))
            log.info(f"Pool refresh scheduled every {UPDATE_INTERVAL:.0f}s")
        try:
            yield
        finally:
            if task is not None:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    app = FastAPI(title="poolwatch", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.services = services

    app.include_router(api.router, prefix="/api")
    return app


app = create_app()
