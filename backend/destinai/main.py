import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from destinai.config import settings

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(settings.log_dir)
_LOG_DIR.mkdir(parents=True, exist_ok=True)

_log_level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "destinai.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("openai").setLevel(logging.WARNING)
logging.getLogger("anthropic").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

from destinai.routers import recommendations
from destinai.schemas.recommendation import ApiError
from destinai.services.recommendation.models import RecommendationError, TerminalKind

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Recommendation service temporarily unavailable. Please try again."

# Terminal kind → (HTTP status, error code)
_ERROR_STATUS = {
    TerminalKind.TIMEOUT: (504, "llm_timeout"),
    TerminalKind.PROVIDER_ERROR: (502, "llm_unavailable"),
    TerminalKind.NETWORK_ERROR: (502, "llm_unavailable"),
    TerminalKind.LLM_VALIDATION_FAILED: (422, "llm_validation_failed"),
}


app = FastAPI(
    title="DestinAI",
    description="Travel destination recommendations",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, error: str, message: str, field_errors: dict | None = None) -> JSONResponse:
    body = ApiError(error=error, message=message, field_errors=field_errors)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(RecommendationError)
async def recommendation_error_handler(request: Request, exc: RecommendationError):
    status_code, error = _ERROR_STATUS[exc.kind]
    reason = exc.reason.value if exc.reason else None
    logger.warning(
        f"Recommendation failed: kind={exc.kind.value} reason={reason} "
        f"status={exc.status_code} path={request.url.path}"
    )
    return _error_response(status_code, error, GENERIC_FAILURE_MESSAGE)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    field_errors = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        field_errors[".".join(loc) or "body"] = err.get("msg", "Invalid value")
    return _error_response(400, "validation_error", "Validation failed.", field_errors)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled API exception: path={request.url.path}")
    return _error_response(500, "internal_error", "Unexpected server error.")


app.include_router(recommendations.router, prefix="/api/recommendations", tags=["recommendations"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "destinai"}
