"""
Lifespan and factory of the FastAPI application.
Creates the document store table on startup and registers the routers.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campus_resources.configs.settings import settings
from campus_resources.cores.db import create_tables

from campus_resources.apis.resource_api import router as resource_router
from campus_resources.apis.download_api import router as download_router
from campus_resources.apis.admin_api import router as admin_router
from campus_resources.apis.profile_api import router as profile_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Campus Resources",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(resource_router, prefix="/api/resources", tags=["Resources"])
    app.include_router(download_router, prefix="/api/downloads", tags=["Downloads"])
    app.include_router(profile_router, prefix="/api/profile", tags=["Profile"])
    app.include_router(admin_router, prefix="/api/admin", tags=["Admin"])

    return app
