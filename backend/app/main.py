import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.api.activities import router as activities_router
from app.api.sessions import SessionRegistry, router as sessions_router
from app.db import Base, engine
from app.models.activity import Activity  # noqa: F401  (import ensures table is registered)
from app.models.activity_segment import ActivitySegment  # noqa: F401
from app.core.config import settings


logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="RunPulse")

# Allow CORS for local frontend
origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create DB tables (activities, segments) on startup
Base.metadata.create_all(bind=engine)

# Live tracking sessions held in memory for the lifetime of the process
app.state.sessions = SessionRegistry()

app.include_router(sessions_router)
app.include_router(activities_router)


@app.get("/")
def root():
    return {"message": "RunPulse backend is running"}
