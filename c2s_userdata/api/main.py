"""
c2s_userdata.api.main — FastAPI application entry point
=======================================================

Run with::

    python -m c2s_userdata

or, for development::

    uvicorn c2s_userdata.api.main:app --reload --port 3000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

load_dotenv()

from c2s_userdata import __version__  # noqa: E402
from c2s_userdata.api.deps import get_config, get_engine  # noqa: E402
from c2s_userdata.api.routes.admin import router as admin_router  # noqa: E402
from c2s_userdata.api.routes.userdata import router as userdata_router  # noqa: E402
from c2s_userdata.database.engine import init_db, verify_connection  # noqa: E402
from c2s_userdata.errors import UserDataError  # noqa: E402
from c2s_userdata.services.membership_service import DiscordMembership  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle.

    Startup is all-or-nothing: an unreachable database or a rejected
    Discord token raises here and the server never starts listening.
    """
    cfg = get_config()

    engine = get_engine()
    verify_connection(engine)
    init_db(engine)

    token = os.getenv("DISCORD_TOKEN")
    if not token:
        raise RuntimeError("DISCORD_TOKEN is not set.  Copy .env.example → .env and paste your bot token.")

    membership = DiscordMembership(cfg.guild_id)
    await membership.start(token)
    app.state.membership = membership
    logger.info("C2S UserData API started — engine ready (%s)", engine.url.database)
    try:
        yield
    finally:
        logger.info("C2S UserData API shutting down")
        app.state.membership = None
        await membership.close()


app = FastAPI(
    title="C2S UserData API",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(UserDataError)
async def userdata_error_handler(request: Request, exc: UserDataError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc)
    return JSONResponse({"error": str(exc)}, status_code=exc.status_code)


# Mount routers
app.include_router(userdata_router)
app.include_router(admin_router)


@app.get("/")
def liveness():
    return {"success": True}
