"""Aggregate API router: mounts all sub-routers under ``/api``."""
from fastapi import APIRouter
from assettrackr.api import projects, assets, asset_groups, upload_jobs, users

router = APIRouter(prefix="/api")

router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(assets.router, tags=["Assets"])
router.include_router(asset_groups.router, tags=["Asset Groups"])
router.include_router(upload_jobs.router, tags=["Uploads"])
router.include_router(users.router, prefix="/users", tags=["Users"])
