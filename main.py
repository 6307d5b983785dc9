"""
Crease - Cricket Live Scoring & Tournament API
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crease.config import settings
from crease.database import init_db
from crease.api.auth import router as auth_router
from crease.api.match import router as match_router
from crease.api.tournament import router as tournament_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialize FastAPI app
app = FastAPI(
    title="Crease",
    description="Cricket ball-by-ball scoring and tournament API",
    version="0.1.0",
)

# CORS origins - configurable via environment variable
default_origins = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:3001",
    "http://127.0.0.1:5173",
]

# Add custom origins from environment (comma-separated)
if settings.CORS_ORIGINS:
    default_origins.extend([o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()])

# Admin console and viewer both run in the browser
app.add_middleware(
    CORSMiddleware,
    allow_origins=default_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router, prefix="/api")
app.include_router(match_router, prefix="/api")
app.include_router(tournament_router, prefix="/api")


@app.on_event("startup")
def startup_event():
    """Initialize database on startup"""
    init_db()


@app.get("/")
def root():
    """Health check endpoint"""
    return {
        "name": "Crease API",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/api/health")
def health_check():
    """API health check"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
