"""
TripChat - Main FastAPI Application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import logging
import os

from tripchat import __version__
from tripchat.utils.logger import setup_logging

# Load environment variables
load_dotenv()
setup_logging()

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="TripChat API",
    description="Conversational travel planner with itinerary, weather, food and map extraction",
    version=__version__,
    debug=os.getenv("DEBUG", "false").lower() == "true"
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[os.getenv("FRONTEND_URL", "http://localhost:3000")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Create tables and warm up the conversation stack"""
    from tripchat.conversational import get_conversation_manager
    get_conversation_manager()
    logger.info("✅ TripChat API started successfully!")
    logger.info("📍 Chat endpoint enabled at /api/chat")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "TripChat API",
        "version": __version__,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""

    # Check if essential env vars are set
    return {
        "status": "healthy",
        "gemini_api": "configured" if os.getenv("GEMINI_API_KEY") else "missing",
        "weather_api": "configured" if os.getenv("WEATHER_API_KEY") else "synthetic",
        "amadeus_api": "configured" if os.getenv("AMADEUS_API_KEY") else "synthetic",
    }


# Import routers
from tripchat.routers import chat
app.include_router(chat.router, prefix="/api", tags=["chat"])


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("BACKEND_PORT", 8000))
    uvicorn.run(
        "tripchat.main:app",
        host="0.0.0.0",
        port=port,
        reload=os.getenv("DEBUG", "false").lower() == "true"
    )
