"""In-memory data source: the real service layer on a private SQLite database.

Used for demos and tests without a running server. Domain errors become
``ApiError`` with the status the HTTP API would have answered with, and
results are serialized through the same response schemas.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session, sessionmaker

from assettrackr.client.datasource import ApiError, AssetFilters
from assettrackr.config import get_settings
from assettrackr.database import build_engine, create_tables
from assettrackr.exceptions import AssetTrackerError, InvalidRequestError
from assettrackr.schemas.asset import (
    AssetGroupCreate,
    AssetGroupResponse,
    BulkUpdateRequest,
    BulkUpdateResponse,
    SubAssetCreate,
    SubAssetResponse,
    SubAssetUpdate,
    ValidateResponse,
)
from assettrackr.schemas.common import AssetType
from assettrackr.schemas.project import ProjectResponse, ProjectSettings, ProjectUpdate
from assettrackr.schemas.upload import UploadJobResponse
from assettrackr.schemas.user import UserResponse
from assettrackr.services import asset_service, project_service, upload_service, user_service
from assettrackr.services.filtering import filter_asset_groups, filter_sub_assets
from assettrackr.services.scheduler import Scheduler, ThreadScheduler
from assettrackr.services.upload_service import UploadPipeline
from assettrackr.utils.helpers import exceeds_size_limit, safe_upload_name
from assettrackr.utils.seed import seed_demo_data

logger = logging.getLogger(__name__)


def _dump(schema: type[BaseModel], obj) -> dict:
    return schema.model_validate(obj).model_dump(mode="json")


def _dump_all(schema: type[BaseModel], objs) -> list[dict]:
    return [_dump(schema, o) for o in objs]


class FakeDataSource:
    def __init__(
        self,
        scheduler: Scheduler | None = None,
        seed: bool = True,
        delays: dict[str, float] | None = None,
    ):
        self.engine = build_engine("sqlite://")
        create_tables(self.engine)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.scheduler = scheduler or ThreadScheduler()
        # One in-memory connection serves every thread
        self._lock = threading.RLock()
        self.pipeline = UploadPipeline(
            self.session_factory, self.scheduler, delays or get_settings().upload_stage_delays,
            lock=self._lock,
        )
        if seed:
            with self._session() as db:
                seed_demo_data(db)
                self.pipeline.resume_active(db)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._lock:
            db = self.session_factory()
            try:
                yield db
            except AssetTrackerError as exc:
                db.rollback()
                raise ApiError(exc.message, exc.status_code, {"error": exc.message}) from exc
            except ValidationError as exc:
                db.rollback()
                err = exc.errors()[0]
                message = f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
                raise ApiError(message, 400, {"error": message}) from exc
            finally:
                db.close()

    # ── Projects ───────────────────────────────────────────────────────

    def list_projects(self) -> list[dict]:
        with self._session() as db:
            return _dump_all(ProjectResponse, project_service.list_projects(db))

    def get_project(self, project_id: str) -> dict:
        with self._session() as db:
            return _dump(ProjectResponse, project_service.get_project(db, project_id))

    def create_project(self, repo_url: str) -> dict:
        with self._session() as db:
            return _dump(ProjectResponse, project_service.create_project(db, repo_url))

    def update_project(self, project_id: str, data: dict) -> dict:
        with self._session() as db:
            payload = ProjectUpdate.model_validate(data)
            return _dump(ProjectResponse, project_service.update_project(db, project_id, payload))

    def delete_project(self, project_id: str) -> None:
        with self._session() as db:
            project_service.delete_project(db, project_id)

    def sync_project(self, project_id: str) -> dict:
        with self._session() as db:
            return _dump(ProjectResponse, project_service.sync_project(db, project_id))

    def get_project_settings(self, project_id: str) -> dict:
        with self._session() as db:
            return project_service.get_project_settings(db, project_id).model_dump(mode="json")

    def update_project_settings(self, project_id: str, settings: dict) -> dict:
        with self._session() as db:
            payload = ProjectSettings.model_validate(settings)
            return project_service.update_project_settings(db, project_id, payload).model_dump(mode="json")

    # ── Sub-assets ─────────────────────────────────────────────────────

    def list_assets(self, project_id: str, filters: AssetFilters | None = None) -> list[dict]:
        filters = filters or AssetFilters()
        with self._session() as db:
            subs = [SubAssetResponse.model_validate(s) for s in asset_service.list_sub_assets(db, project_id)]
            subs = filter_sub_assets(subs, filters.search, filters.status, filters.type)
            return [s.model_dump(mode="json") for s in subs]

    def get_asset(self, project_id: str, asset_id: str) -> dict:
        with self._session() as db:
            return _dump(SubAssetResponse, asset_service.get_sub_asset(db, project_id, asset_id))

    def update_asset(self, project_id: str, asset_id: str, data: dict) -> dict:
        with self._session() as db:
            payload = SubAssetUpdate.model_validate(data)
            return _dump(SubAssetResponse, asset_service.update_sub_asset(db, project_id, asset_id, payload))

    def delete_asset(self, project_id: str, asset_id: str) -> None:
        with self._session() as db:
            asset_service.delete_sub_asset(db, project_id, asset_id)

    def request_update(self, project_id: str, asset_id: str, reasons: list[str], notes: str | None = None) -> dict:
        with self._session() as db:
            sub = asset_service.mark_needs_update(db, project_id, asset_id, reasons, notes)
            return _dump(SubAssetResponse, sub)

    def add_version(self, project_id: str, asset_id: str, files: list[str], notes: str | None = None) -> dict:
        with self._session() as db:
            return _dump(SubAssetResponse, asset_service.add_version(db, project_id, asset_id, files, notes))

    def bulk_update(self, project_id: str, data: dict) -> dict:
        with self._session() as db:
            updated, errors = asset_service.bulk_update(db, project_id, BulkUpdateRequest.model_validate(data))
            return BulkUpdateResponse(
                updated=[SubAssetResponse.model_validate(s) for s in updated],
                errors=errors,
            ).model_dump(mode="json")

    # ── Asset groups ───────────────────────────────────────────────────

    def list_asset_groups(self, project_id: str, filters: AssetFilters | None = None) -> list[dict]:
        filters = filters or AssetFilters()
        with self._session() as db:
            groups = [AssetGroupResponse.model_validate(g) for g in asset_service.list_asset_groups(db, project_id)]
            groups = filter_asset_groups(groups, filters.search, filters.status, filters.type)
            return [g.model_dump(mode="json") for g in groups]

    def get_asset_group(self, project_id: str, group_id: str) -> dict:
        with self._session() as db:
            return _dump(AssetGroupResponse, asset_service.get_asset_group(db, project_id, group_id))

    def create_asset_group(self, project_id: str, data: dict) -> dict:
        with self._session() as db:
            payload = AssetGroupCreate.model_validate(data)
            return _dump(AssetGroupResponse, asset_service.create_asset_group(db, project_id, payload))

    def delete_asset_group(self, project_id: str, group_id: str) -> None:
        with self._session() as db:
            asset_service.delete_asset_group(db, project_id, group_id)

    def create_sub_asset(self, project_id: str, group_id: str, data: dict) -> dict:
        with self._session() as db:
            payload = SubAssetCreate.model_validate(data)
            return _dump(SubAssetResponse, asset_service.create_sub_asset(db, project_id, group_id, payload))

    # ── Uploads ────────────────────────────────────────────────────────

    def upload(self, project_id: str, files: list[tuple[str, bytes]], sub_asset_id: str | None = None) -> dict:
        max_mb = get_settings().MAX_UPLOAD_SIZE_MB
        with self._session() as db:
            names: list[str] = []
            for original, content in files:
                name = safe_upload_name(original)
                if not name:
                    raise InvalidRequestError(f"Rejected '{original}': invalid file name")
                if exceeds_size_limit(len(content), max_mb):
                    raise InvalidRequestError(f"'{name}' exceeds {max_mb}MB limit")
                names.append(name)
            job = self.pipeline.submit(db, project_id, names, sub_asset_id)
            return _dump(UploadJobResponse, job)

    def list_upload_jobs(self, project_id: str) -> list[dict]:
        with self._session() as db:
            return _dump_all(UploadJobResponse, upload_service.list_upload_jobs(db, project_id))

    def get_upload_job(self, project_id: str, job_id: str) -> dict:
        with self._session() as db:
            return _dump(UploadJobResponse, upload_service.get_upload_job(db, project_id, job_id))

    def cancel_upload_job(self, project_id: str, job_id: str) -> dict:
        with self._session() as db:
            return _dump(UploadJobResponse, self.pipeline.cancel(db, project_id, job_id))

    def validate(self, asset_type: str, files: list[str], required_format: str | None = None,
                 project_id: str | None = None) -> dict:
        with self._session() as db:
            try:
                type_value = AssetType(asset_type)
            except ValueError:
                raise ApiError(f"Unknown asset type '{asset_type}'", 400) from None
            findings = asset_service.preview_validation(db, type_value.value, files, required_format, project_id)
            return ValidateResponse(asset_type=type_value, findings=findings).model_dump(mode="json")

    # ── Users ──────────────────────────────────────────────────────────

    def list_users(self) -> list[dict]:
        with self._session() as db:
            return _dump_all(UserResponse, user_service.list_users(db))

    def get_current_user(self) -> dict:
        with self._session() as db:
            return _dump(UserResponse, user_service.get_current_user(db))

    def get_user(self, user_id: str) -> dict:
        with self._session() as db:
            return _dump(UserResponse, user_service.get_user(db, user_id))
