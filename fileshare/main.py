import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fileshare.api.v1.routes_files import router as files_router
from fileshare.api.v1.routes_share import router as share_router
from fileshare.core import messages
from fileshare.core.config import get_settings
from fileshare.core.exceptions import FileShareError
from fileshare.core.logging_config import configure_logging


settings = get_settings()
configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info("Starting %s (%s)", settings.app_name, settings.app_env)
    yield


def register_exception_handlers(application: FastAPI) -> None:
    @application.exception_handler(FileShareError)
    async def handle_file_share_error(request: Request, exc: FileShareError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @application.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": messages.INVALID_REQUEST})

    @application.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": messages.INTERNAL_ERROR})


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        openapi_url=f"{settings.api_v1_str}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.backend_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(application)

    api_router = APIRouter()
    api_router.include_router(files_router)
    api_router.include_router(share_router)

    application.include_router(api_router, prefix=settings.api_v1_str)

    @application.get("/health", tags=["Health"])
    async def health_check():
        return {"status": "ok"}

    return application


app = create_app()
