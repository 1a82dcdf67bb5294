"""SQLAlchemy ORM models package."""
from assettrackr.models.user import User
from assettrackr.models.project import Project
from assettrackr.models.asset_group import AssetGroup
from assettrackr.models.sub_asset import SubAsset
from assettrackr.models.upload_job import UploadJob

__all__ = [
    "User",
    "Project",
    "AssetGroup",
    "SubAsset",
    "UploadJob",
]
