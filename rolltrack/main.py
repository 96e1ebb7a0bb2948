from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Import router after logging is configured
from .api_router import api_router
from . import config
from .exceptions import RollEngineError, InvalidStage, UnknownStage, EmptySelection, IncompleteRecord

app = FastAPI(
    title="Roll Tracking & Reporting",
    description="Filter, aggregate, select and print production rolls",
)

ENGINE_ERROR_STATUS = {
    InvalidStage: 422,
    UnknownStage: 422,
    IncompleteRecord: 422,
    EmptySelection: 400,
}

# Global exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"❌ VALIDATION ERROR on {request.method} {request.url}: {exc}")
    logger.error(f"❌ VALIDATION DETAILS: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": f"Validation error: {exc.errors()}"}
    )

@app.exception_handler(RollEngineError)
async def roll_engine_exception_handler(request: Request, exc: RollEngineError):
    status_code = ENGINE_ERROR_STATUS.get(type(exc), 400)
    logger.warning(f"{type(exc).__name__} on {request.method} {request.url}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": exc.message}
    )

logger.info(f"CORS origins: {config.CORS_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)

@app.get("/")
async def root():
    return {"message": "Roll Tracking & Reporting API is Live"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
