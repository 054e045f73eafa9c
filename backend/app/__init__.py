import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.db import init_all_databases
from app.exceptions import EstudosException

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_all_databases(settings.data_dir)
    yield


async def estudos_exception_handler(request: Request, exc: EstudosException):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.warning(
            "%s %s declined: %s: %s",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc), "code": exc.code},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(
        "Validation error on %s %s: %s", request.method, request.url.path, exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request data",
            "code": "VALIDATION_ERROR",
            "details": [
                {"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()
            ],
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
    )


def create_app() -> FastAPI:
    application = FastAPI(
        title="Estudos ENEM Backend", version="0.1.0", lifespan=lifespan
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(EstudosException, estudos_exception_handler)
    application.add_exception_handler(
        RequestValidationError, validation_exception_handler
    )
    application.add_exception_handler(Exception, unhandled_exception_handler)

    from app.routers import flashcards, gamification, health, subjects

    application.include_router(health.router)
    application.include_router(
        subjects.router, prefix="/subjects", tags=["subjects"]
    )
    application.include_router(
        flashcards.router, prefix="/flashcards", tags=["flashcards"]
    )
    application.include_router(
        gamification.router, prefix="/gamification", tags=["gamification"]
    )

    return application


app = create_app()
