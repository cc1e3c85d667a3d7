"""
LetsRace.cc digest web application
Subscription endpoints and admin digest tools
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from letsrace.collector.events import EventSourceAdapter
from letsrace.config import settings
from letsrace.database import init_db, is_initialized
from letsrace.web.routes import public_router, admin_router, api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not is_initialized():
        init_db(settings.database_url)
    # Shared by every request; owns the event cache
    app.state.event_source = EventSourceAdapter()
    yield


app = FastAPI(
    title="LetsRace.cc Digest",
    description="Weekly cycling events email digest",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Admin-Token"],
    max_age=86400,
)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
    )


app.include_router(public_router)
app.include_router(admin_router)
app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
