import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import OperationalError
from datetime import datetime, timezone

from cloudvault.api.api_v1.api import api_router
from cloudvault.core.config import settings, ensure_storage_paths
from cloudvault.core.errors import CloudVaultError
from cloudvault.db.base import Base
from cloudvault.db.session import engine

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], # In production, replace with specific origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"message": f"Welcome to {settings.PROJECT_NAME} API"}

@app.get("/health")
def health():
    return {
        "status": "healthy",
        "service": "cloudvault",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

@app.exception_handler(CloudVaultError)
async def cloudvault_exception_handler(request: Request, exc: CloudVaultError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
        headers=exc.headers,
    )

@app.exception_handler(OperationalError)
async def metadata_unavailable_handler(request: Request, exc: OperationalError):
    logger.error("Metadata store unavailable: %s", exc)
    return JSONResponse(
        status_code=503,
        content={"error": "Service temporarily unavailable", "code": "SERVICE_UNAVAILABLE"},
    )

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("Validation Error: %s", exc)
    return JSONResponse(
        status_code=422,
        content={"message": "Validation Error", "detail": jsonable_encoder(exc.errors())},
    )

@app.on_event("startup")
async def startup_event():
    # Create tables for development (in production use Alembic)
    Base.metadata.create_all(bind=engine)
    ensure_storage_paths(settings.STORAGE_PATHS)
    logger.debug("Registered Routes:")
    for route in app.routes:
        if hasattr(route, "path"):
            logger.debug("  %s", route.path)

def run():
    uvicorn.run(app, host="127.0.0.1", port=8899)

if __name__ == "__main__":
    run()
