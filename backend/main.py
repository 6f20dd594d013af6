import logging
import os

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from postgrest.exceptions import APIError
from sqlalchemy.exc import SQLAlchemyError

import config
from database import SessionLocal, database_kind, init_db
from logging_setup import setup_logging
from routes import router
from services import ServiceError, ensure_admin_account
from stores import SqlStore

logger = logging.getLogger(__name__)

app = FastAPI(
    title="SkillHive Marketplace API",
    description="Backend API for the university freelancing marketplace: projects, applications and users",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error mapping
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.exception_handler(APIError)
async def supabase_error_handler(request: Request, exc: APIError):
    logger.exception("Supabase error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.on_event("startup")
async def startup_event():
    """Configure logging, create tables and seed the admin account."""
    setup_logging(config.LOG_LEVEL, config.LOG_FILE)
    logger.info("Starting application (store backend: %s)", config.STORE_BACKEND)

    if config.STORE_BACKEND != "sql":
        return

    # A broken database should not keep the API from starting
    try:
        init_db()
        db = SessionLocal()
        try:
            ensure_admin_account(SqlStore(db))
        finally:
            db.close()
        logger.info("Application started with %s database", database_kind())
    except SQLAlchemyError:
        logger.exception("Database initialization failed; continuing without it")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "skillhive-api"}


app.include_router(router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 3001))
    uvicorn.run(app, host="0.0.0.0", port=port)
