import contextlib

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Mount

from tasksync import runtime
from tasksync.config import get_settings
from tasksync.exceptions import (
    AuthenticationError,
    IntegrationError,
    InvalidOperationError,
    NotFoundError,
    RateLimitError,
)
from tasksync.logging_setup import setup_logging
from tasksync.mcp_server import mcp
from tasksync.routers.folders import router as folders_router
from tasksync.routers.settings import router as settings_router
from tasksync.routers.sync import router as sync_router
from tasksync.routers.tasks import router as tasks_router


# --- Localhost-only middleware ---

class LocalhostOnlyMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        client_host = request.client.host if request.client else None
        if client_host not in ("127.0.0.1", "::1", "localhost"):
            return JSONResponse(
                status_code=403,
                content={"error_code": "forbidden", "message": "Localhost access only"},
            )
        return await call_next(request)


# --- FastAPI app ---

api = FastAPI(title="Tasksync", version="0.1.0")
api.include_router(tasks_router)
api.include_router(folders_router)
api.include_router(sync_router)
api.include_router(settings_router)


@api.get("/api/status")
def api_status() -> dict:
    store = runtime.get_store()
    state = runtime.get_scheduler().state
    return {
        "notion": {"connected": store.is_connected()},
        "sync": state.model_dump(mode="json"),
        "tasks": len(store.get_all_tasks()),
    }


# --- Exception handlers ---

@api.exception_handler(AuthenticationError)
async def auth_error_handler(request: Request, exc: AuthenticationError):
    return JSONResponse(status_code=401, content={"error_code": "auth_error", "message": str(exc)})


@api.exception_handler(IntegrationError)
async def integration_error_handler(request: Request, exc: IntegrationError):
    return JSONResponse(status_code=500, content={"error_code": "integration_error", "message": str(exc)})


@api.exception_handler(RateLimitError)
async def rate_limit_error_handler(request: Request, exc: RateLimitError):
    return JSONResponse(status_code=429, content={"error_code": "rate_limit", "message": str(exc)})


@api.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"error_code": "not_found", "message": str(exc)})


@api.exception_handler(InvalidOperationError)
async def invalid_operation_error_handler(request: Request, exc: InvalidOperationError):
    return JSONResponse(status_code=400, content={"error_code": "invalid_operation", "message": str(exc)})


# --- Starlette root app ---

mcp_app = mcp.http_app(path="/", stateless_http=True)


@contextlib.asynccontextmanager
async def lifespan(app: Starlette):
    scheduler = runtime.get_scheduler()
    scheduler.initialize()
    try:
        async with mcp_app.lifespan(app):
            yield
    finally:
        await scheduler.shutdown()


app = Starlette(
    middleware=[Middleware(LocalhostOnlyMiddleware)],
    routes=[
        Mount("/mcp", app=mcp_app),
        Mount("/", app=api),
    ],
    lifespan=lifespan,
)


def run():
    settings = get_settings()
    setup_logging(settings.log_level.upper())
    uvicorn.run(
        "tasksync.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
