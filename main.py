"""
TechLearn backend: FastAPI app exposing the function endpoints and the
course/learning/chat/auth REST API.

Run with `uvicorn main:app`. Configuration is read and validated on
startup; a missing key stops the server before it accepts requests.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from routes.course_routes import router as course_router
from routes.function_routes import router as function_router
from services.container import ServiceContainer, build_default_container
from utils.exceptions import TechLearnError
from utils.settings import Settings

# Configure logging
logger = logging.getLogger(__name__)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)


def create_app(container: Optional[ServiceContainer] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the app. With no container, settings are loaded from the
    environment and validated when the app starts, and the production
    collaborators are wired up. CORS origins come from the same settings.
    """
    if settings is not None:
        app_settings = settings
    elif container is not None:
        app_settings = container.settings
    else:
        app_settings = Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "container", None) is None:
            app.state.container = build_default_container(app_settings.validate())
            logger.info("TechLearn services ready")
        yield

    app = FastAPI(title="TechLearn API", lifespan=lifespan)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(TechLearnError)
    async def techlearn_exception_handler(request: Request, exc: TechLearnError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed [{exc.error_code}]: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        try:
            detail = jsonable_encoder(exc.errors())
        except UnicodeDecodeError:
            detail = [{
                "loc": ["binary_content"],
                "msg": "Binary data cannot be properly decoded as UTF-8",
                "type": "binary_data_error",
            }]
        return JSONResponse(
            status_code=422,
            content={"success": False, "error": "INVALID_REQUEST", "message": "Invalid request body", "detail": detail},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "INTERNAL_ERROR", "message": "An unexpected error occurred"},
        )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(function_router)
    app.include_router(course_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
