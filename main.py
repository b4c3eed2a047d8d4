from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import uvicorn
from dotenv import load_dotenv
import logging

# Load environment variables from .env file
load_dotenv()

import constants

# Configure logging
logging.basicConfig(level=constants.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

from mongo.client import direct_mongo_client
from mongo.create_indexes import ensure_indexes
from rbac.errors import WorkspaceError
from accounts.router import router as accounts_router
from projects.router import router as projects_router
from tasks.router import router as tasks_router
from events.router import router as events_router
from users.router import router as users_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the lifespan of the FastAPI application"""
    # Startup
    await direct_mongo_client.connect()
    try:
        await ensure_indexes(direct_mongo_client.database)
    except Exception as e:
        logger.error(f"Index creation failed: {e}")
    yield

    # Shutdown
    await direct_mongo_client.disconnect()


# Create FastAPI app
app = FastAPI(
    title="Workspace API",
    description="Projects, tasks and events with role and ownership based access control",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI at /docs
    redoc_url="/redoc",  # ReDoc at /redoc
    openapi_url="/openapi.json",  # OpenAPI schema at /openapi.json
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=constants.CORS_ALLOW_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WorkspaceError)
async def workspace_error_handler(request: Request, exc: WorkspaceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.error})")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Something went wrong!", "error": str(exc)})


# Include API routes
app.include_router(accounts_router, prefix=constants.API_PREFIX)
app.include_router(projects_router, prefix=constants.API_PREFIX)
app.include_router(tasks_router, prefix=constants.API_PREFIX)
app.include_router(events_router, prefix=constants.API_PREFIX)
app.include_router(users_router, prefix=constants.API_PREFIX)


@app.get("/")
async def root():
    """Root endpoint"""
    return {"message": "Workspace API", "status": "running"}


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "database": "connected" if direct_mongo_client.connected else "disconnected"}


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=constants.HOST,
        port=constants.PORT,
        reload=True,
        log_level=constants.LOG_LEVEL.lower(),
        forwarded_allow_ips="*"
        )
