"""Entry point for the document store service."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from common.constants import REQUEST_ID_HEADER
from common.logging_config import get_logger, setup_logging
from docstore import service_locator
from docstore.config import SERVER_HOST, SERVER_PORT
from docstore.database import get_db_connection, init_database
from docstore.exceptions import (
    AccessDeniedError,
    DependencyFailure,
    DocStoreException,
    InvalidAPIKeyError,
    NodeNotFoundError,
    QuotaExceededError,
    UserAlreadyExistsError,
    UserNotFoundError,
    ValidationError
)
from docstore.repositories.event_repository import EventRepository
from docstore.routes.collaborator_routes import router as collaborator_router
from docstore.routes.document_routes import router as document_router
from docstore.routes.internal_routes import router as internal_router
from docstore.routes.user_routes import router as user_router
from docstore.services.notification_service import NotificationDispatcher
from docstore.utils import to_megabytes

setup_logging('docstore')
logger = get_logger(__name__)

app = FastAPI(
    title="DocStore",
    description="Hierarchical document store with cascading collaborator permissions",
    version="1.0.0"
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers[REQUEST_ID_HEADER] = request_id

    return response


@app.on_event("startup")
async def startup_event():
    """
    Initialize database and start the notification dispatcher.
    """
    logger.info("DocStore service starting up...")

    init_database()
    logger.info("Database initialized")

    dispatcher = NotificationDispatcher(service_locator.get_notification_emitter())
    service_locator.set_notification_dispatcher(dispatcher)
    await dispatcher.start()


@app.on_event("shutdown")
async def shutdown_event():
    """
    Stop background tasks and close outbound sessions.
    """
    logger.info("DocStore service shutting down...")

    dispatcher = service_locator.get_notification_dispatcher()
    if dispatcher:
        await dispatcher.stop()

    await service_locator.get_notification_emitter().close()
    await service_locator.get_content_store().close()
    logger.info("Outbound clients closed")


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', 'unknown')


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning(
        f"Malformed request: {exc.errors()} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Malformed request body or parameters", "code": "VALIDATION_ERROR"}
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.warning(
        f"Validation error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "code": "VALIDATION_ERROR"}
    )


@app.exception_handler(InvalidAPIKeyError)
async def invalid_api_key_handler(request: Request, exc: InvalidAPIKeyError):
    logger.warning(
        f"Invalid API key error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": str(exc), "code": "INVALID_API_KEY"}
    )


@app.exception_handler(AccessDeniedError)
async def access_denied_handler(request: Request, exc: AccessDeniedError):
    logger.warning(
        f"Access denied: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"detail": str(exc), "code": "ACCESS_DENIED"}
    )


@app.exception_handler(NodeNotFoundError)
async def node_not_found_handler(request: Request, exc: NodeNotFoundError):
    logger.warning(
        f"Document not found: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "code": "DOCUMENT_NOT_FOUND"}
    )


@app.exception_handler(UserNotFoundError)
async def user_not_found_handler(request: Request, exc: UserNotFoundError):
    logger.warning(
        f"User not found: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "code": "USER_NOT_FOUND"}
    )


@app.exception_handler(UserAlreadyExistsError)
async def user_already_exists_handler(request: Request, exc: UserAlreadyExistsError):
    logger.warning(
        f"User already exists error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": str(exc), "code": "USER_ALREADY_EXISTS"}
    )


@app.exception_handler(QuotaExceededError)
async def quota_exceeded_handler(request: Request, exc: QuotaExceededError):
    logger.warning(
        f"Quota exceeded: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        content={
            "detail": "Storage limit exceeded",
            "code": "QUOTA_EXCEEDED",
            "used": exc.used,
            "limit": exc.limit,
            "required": exc.required,
            "used_mb": to_megabytes(exc.used),
            "limit_mb": to_megabytes(exc.limit),
            "required_mb": to_megabytes(exc.required),
        }
    )


@app.exception_handler(DependencyFailure)
async def dependency_failure_handler(request: Request, exc: DependencyFailure):
    logger.error(
        f"Dependency failure: {exc} [request_id={_request_id(request)}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "code": "DEPENDENCY_FAILURE"}
    )


@app.exception_handler(DocStoreException)
async def docstore_exception_handler(request: Request, exc: DocStoreException):
    logger.error(
        f"DocStore exception: {exc} [request_id={_request_id(request)}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "code": "INTERNAL_ERROR"}
    )


app.include_router(document_router)
app.include_router(collaborator_router)
app.include_router(user_router)
app.include_router(internal_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "DocStore API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Health check endpoint for Docker healthcheck.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": "docstore"}


@app.get("/ready")
async def ready_check():
    """
    Readiness check endpoint.
    Verifies database and content store connectivity and reports the outbox backlog.
    """
    outbox = {}
    try:
        with get_db_connection() as conn:
            conn.execute("SELECT 1").fetchone()
        outbox = EventRepository.count_by_status()
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {str(e)}"

    content_store_ok = await service_locator.get_content_store().ping()
    content_store_status = "ok" if content_store_ok else "unreachable"

    ready = db_status == "ok" and content_store_ok
    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "ready": ready,
            "database": db_status,
            "content_store": content_store_status,
            "outbox": outbox,
        }
    )


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "docstore.main:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
    )


if __name__ == "__main__":
    main()
