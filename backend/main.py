import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import settings
from core.errors import InventoryError
from db.storage import InventoryStorage
from routers.admin import health_router, router as admin_router
from routers.intent import router as intent_router
from routers.inventory import router as inventory_router

logger.remove()
logger.add(sys.stderr, level=settings.log_level)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(InventoryError)
    async def inventory_error_handler(request: Request, exc: InventoryError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": _validation_message(exc)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )


def create_app(storage: Optional[InventoryStorage] = None) -> FastAPI:
    storage = storage or InventoryStorage.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state = await storage.start()
        logger.info(f"Inventory storage ready: {state.value} ({storage.current_backend().value})")
        yield
        await storage.disconnect()

    app = FastAPI(
        title="Inventory Tracker API",
        description="Per-owner inventory tracking over REST and voice intents",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.storage = storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])
    app.include_router(intent_router, prefix="/intent", tags=["intent"])
    # Older skill configurations point at /alexa
    app.include_router(intent_router, prefix="/alexa", tags=["intent"], include_in_schema=False)
    app.include_router(admin_router, prefix="/admin", tags=["admin"])
    app.include_router(health_router, tags=["health"])

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=settings.port, reload=settings.app_env != "production")
