"""
FastAPI entry point for the document quiz service.

Wires logging, the schema, CORS, error handlers and the v1 routers. The
OpenAI-backed question generator is built once at startup and kept on
``app.state``; it is None when no API key is configured.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import api_router
from app.core.config import settings
from app.core.llm_config import LLMFactory
from app.db.base import engine
from app.models import Base

logging.basicConfig(
    level=logging.INFO,
    format='%(levelname)s:\t%(name)s\t%(message)s',
    handlers=[logging.StreamHandler()],
)
logging.getLogger("uvicorn").setLevel(logging.INFO)
# SDK request logs would repeat the generator's own warnings
logging.getLogger("openai").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

# Alembic owns migrations; create_all only fills in a fresh database
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Upload documents, chunk them, generate tests from the chunks and score attempts",
    version="0.1.0",
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
)

if settings.BACKEND_CORS_ORIGINS == "*" or not settings.BACKEND_CORS_ORIGINS:
    cors_origins = ["*"]
else:
    cors_origins = [str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS]
logger.info(f"CORS origins: {cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """422 with pydantic's error list and the rejected body."""
    logger.info(f"Rejected {request.method} {request.url.path}: {len(exc.errors())} validation errors")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({"detail": exc.errors(), "body": exc.body}),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Last-resort handler for errors no endpoint translated.

    HTTPException is handled by FastAPI before this is reached; everything
    else becomes a 500 and is logged with its traceback.
    """
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "message": str(exc)},
    )


@app.on_event("startup")
async def startup_event():
    app.state.question_generator = LLMFactory.create_question_generator()
    mode = "enabled" if app.state.question_generator is not None else "disabled"
    logger.info(f"Starting {settings.PROJECT_NAME} (env={settings.ENV}, AI generation {mode})")


@app.on_event("shutdown")
async def shutdown_event():
    """Release the model client's connection pool."""
    generator = getattr(app.state, "question_generator", None)
    if generator is not None:
        generator.client.close()
    logger.info(f"Shutting down {settings.PROJECT_NAME}")


@app.get("/", tags=["Health"])
async def root():
    """Service banner."""
    return {
        "message": "Document Quiz API",
        "status": "healthy",
        "version": app.version,
        "docs": app.docs_url,
    }


@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy"}


app.include_router(api_router, prefix=settings.API_V1_PREFIX)
