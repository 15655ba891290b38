from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os
from pathlib import Path

from streakhub.constants import (
    CORS_ALLOWED_ORIGINS, DEFAULT_LOG_DIRECTORY_DEV, DEFAULT_LOG_DIRECTORY_PROD, LOG_LEVEL
)
from streakhub.database import create_tables
from streakhub.exceptions import StreakHubException
from streakhub.routes import goals, streaks, tasks

LOG_DIR = os.getenv("STREAKHUB_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("STREAKHUB_LOG_FILE", "app.log")

try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()  # Also log to console
    ]
)

logger = logging.getLogger("streakhub")

app = FastAPI(
    title="StreakHub API",
    description="Group accountability with daily tasks, streaks and goals",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def streakhub_exception_handler(request: Request, exc: StreakHubException):
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


app.add_exception_handler(StreakHubException, streakhub_exception_handler)


@app.on_event("startup")
async def startup_event():
    create_tables()
    logger.info(f"StreakHub API started. Logging to: {log_path}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down StreakHub API")


# Health check (no auth required)
@app.get("/")
async def root():
    return {"message": "StreakHub API", "status": "active"}


app.include_router(tasks.router)
app.include_router(streaks.router)
app.include_router(goals.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("streakhub.main:app", host="0.0.0.0", port=8000, reload=False)
