import logging
import os
import sys

# Ensure this directory is in the path for uvicorn and other runners
current_dir = os.path.dirname(os.path.abspath(__file__))
if current_dir not in sys.path:
    sys.path.append(current_dir)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import ALLOWED_ORIGINS
from database import init_db
from exceptions import HabitTrackerError
from routes.auth_routes import router as auth_router
from routes.habit_routes import router as habit_router
from routes.log_routes import router as log_router
from routes.notification_routes import router as notification_router
from routes.report_routes import router as report_router
from routes.revision_routes import router as revision_router
from routes.sync_routes import router as sync_router
from routes.user_routes import router as user_router

logger = logging.getLogger(__name__)

init_db()

app = FastAPI(title="Habit Tracker API")


@app.exception_handler(HabitTrackerError)
async def habit_tracker_error_handler(request: Request, exc: HabitTrackerError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/api/v1/health-check")
async def health():
    return {"status": "ok", "message": "Backend is alive!"}


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(user_router)
app.include_router(habit_router)
app.include_router(log_router)
app.include_router(report_router)
app.include_router(revision_router)
app.include_router(sync_router)
app.include_router(notification_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
