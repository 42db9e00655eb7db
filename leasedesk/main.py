import logging

from fastapi import FastAPI, Request, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from leasedesk.api.v1.api_router import api_router
from leasedesk.core.config import settings
from leasedesk.core.exceptions import LeaseDeskError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="LeaseDesk API",
    description="Payment reconciliation and lease accounting for a car-leasing back office",
    version="1.0.0",
    openapi_url="/openapi.json",
)

# Set up CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    """Application startup event."""
    if settings.AUTO_CREATE_TABLES:
        from leasedesk.core.startup import ensure_tables
        await ensure_tables()
    logger.info("LeaseDesk started: environment=%s currency=%s", settings.ENVIRONMENT, settings.CURRENCY)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error: method=%s path=%s", request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"message": "Internal server error"})


@app.exception_handler(LeaseDeskError)
async def lease_desk_exception_handler(request: Request, exc: LeaseDeskError):
    if exc.status_code >= 500:
        # Integrity failures: keep the detail in the log, not in the response.
        logger.error("Ledger integrity error %s on %s: %s", exc.code, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"message": "Internal server error", "code": exc.code})
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "code": exc.code},
        headers=headers,
    )


@app.exception_handler(ValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "message": "Validation error",
            "errors": _serializable_validation_errors(exc.errors()),
        },
    )


# Exception handlers
@app.exception_handler(HTTPException)
async def custom_http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})


def _serializable_validation_errors(errors: list) -> list:
    """Convert validation error dicts to JSON-serializable form (e.g. ctx may contain Exception)."""
    out = []
    for e in errors:
        item = {"type": e.get("type"), "loc": e.get("loc"), "msg": e.get("msg")}
        if "ctx" in e and e["ctx"]:
            item["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        out.append(item)
    return out


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    errors_serializable = _serializable_validation_errors(exc.errors())
    logger.info(
        "Validation error 422: method=%s path=%s errors=%s",
        request.method,
        request.url.path,
        errors_serializable,
    )
    return JSONResponse(
        status_code=422,
        content={
            "message": "Validation error",
            "errors": errors_serializable,
        },
    )
