# backend/app/main.py
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# load .env before settings are read
load_dotenv()

from app.config import get_settings
from app.db import close_backend, get_backend

from app.routes.auth.auth import router as auth_router
from app.routes.business_profile.profile import router as business_profile_router
from app.routes.directory import router as directory_router
from app.routes.pages import router as pages_router

settings = get_settings()

logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Membership association site backend",
    version=settings.app_version,
)

# CORS - tighten in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix="/auth")
app.include_router(business_profile_router, prefix="/dashboard")
app.include_router(directory_router)
app.include_router(pages_router)


@app.on_event("startup")
async def on_startup():
    if get_backend() is None:
        logger.warning("Starting without a configured backend; auth and profiles are unavailable")


@app.on_event("shutdown")
async def on_shutdown():
    await close_backend()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "status": "running",
        "version": settings.app_version,
        "backend_configured": settings.backend_configured,
    }
