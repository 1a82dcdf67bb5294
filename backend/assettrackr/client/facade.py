"""Cached client façade over a ``DataSource``.

Reads are cached per ``(entity_kind, parent_id, signature)``; every write
invalidates exactly the entity kinds whose views it changes.
"""
from __future__ import annotations

import logging
from typing import Any

from assettrackr.client.cache import QueryCache
from assettrackr.client.datasource import AssetFilters, DataSource
from assettrackr.config import get_settings

logger = logging.getLogger(__name__)

PROJECTS = "projects"
PROJECT = "project"
PROJECT_SETTINGS = "project-settings"
ASSETS = "assets"
ASSET = "asset"
ASSET_GROUPS = "asset-groups"
ASSET_GROUP = "asset-group"
UPLOAD_JOBS = "upload-jobs"
USERS = "users"

# Kinds whose views show sub-assets
_ASSET_VIEWS = (ASSET_GROUPS, ASSET_GROUP, ASSETS, ASSET)


class AssetTrackerClient:
    def __init__(self, source: DataSource, cache: QueryCache | None = None, poll_interval: float | None = None):
        self.source = source
        self.cache = cache if cache is not None else QueryCache()
        self.poll_interval = get_settings().UPLOAD_JOBS_POLL_INTERVAL if poll_interval is None else poll_interval
        self._job_status: dict[str, str] = {}

    def _invalidate_asset_views(self, project_id: str) -> None:
        for kind in _ASSET_VIEWS:
            self.cache.invalidate(kind, project_id)

    # ── Projects ───────────────────────────────────────────────────────

    def projects(self) -> list[dict]:
        return self.cache.fetch(QueryCache.key(PROJECTS), self.source.list_projects)

    def project(self, project_id: str) -> dict:
        return self.cache.fetch(QueryCache.key(PROJECT, project_id), lambda: self.source.get_project(project_id))

    def create_project(self, repo_url: str) -> dict:
        project = self.source.create_project(repo_url)
        self.cache.invalidate(PROJECTS)
        return project

    def update_project(self, project_id: str, data: dict) -> dict:
        project = self.source.update_project(project_id, data)
        self.cache.invalidate(PROJECTS)
        self.cache.invalidate(PROJECT, project_id)
        return project

    def sync_project(self, project_id: str) -> dict:
        project = self.source.sync_project(project_id)
        self.cache.invalidate(PROJECTS)
        self.cache.invalidate(PROJECT, project_id)
        return project

    def delete_project(self, project_id: str) -> None:
        self.source.delete_project(project_id)
        self.cache.invalidate(PROJECTS)
        for kind in (PROJECT, PROJECT_SETTINGS, UPLOAD_JOBS, *_ASSET_VIEWS):
            self.cache.invalidate(kind, project_id)

    def project_settings(self, project_id: str) -> dict:
        return self.cache.fetch(
            QueryCache.key(PROJECT_SETTINGS, project_id),
            lambda: self.source.get_project_settings(project_id),
        )

    def update_project_settings(self, project_id: str, settings: dict) -> dict:
        result = self.source.update_project_settings(project_id, settings)
        self.cache.invalidate(PROJECT_SETTINGS, project_id)
        self.cache.invalidate(PROJECT, project_id)
        return result

    # ── Assets ─────────────────────────────────────────────────────────

    def assets(self, project_id: str, filters: AssetFilters | None = None) -> list[dict]:
        return self.cache.fetch(
            QueryCache.key(ASSETS, project_id, filters),
            lambda: self.source.list_assets(project_id, filters),
        )

    def asset(self, project_id: str, asset_id: str) -> dict:
        return self.cache.fetch(
            QueryCache.key(ASSET, project_id, {"id": asset_id}),
            lambda: self.source.get_asset(project_id, asset_id),
        )

    def asset_groups(self, project_id: str, filters: AssetFilters | None = None) -> list[dict]:
        return self.cache.fetch(
            QueryCache.key(ASSET_GROUPS, project_id, filters),
            lambda: self.source.list_asset_groups(project_id, filters),
        )

    def asset_group(self, project_id: str, group_id: str) -> dict:
        return self.cache.fetch(
            QueryCache.key(ASSET_GROUP, project_id, {"id": group_id}),
            lambda: self.source.get_asset_group(project_id, group_id),
        )

    def create_asset_group(self, project_id: str, data: dict) -> dict:
        group = self.source.create_asset_group(project_id, data)
        self._invalidate_asset_views(project_id)
        return group

    def delete_asset_group(self, project_id: str, group_id: str) -> None:
        self.source.delete_asset_group(project_id, group_id)
        self._invalidate_asset_views(project_id)

    def create_sub_asset(self, project_id: str, group_id: str, data: dict) -> dict:
        sub = self.source.create_sub_asset(project_id, group_id, data)
        self._invalidate_asset_views(project_id)
        return sub

    def update_sub_asset(self, project_id: str, asset_id: str, data: dict) -> dict:
        sub = self.source.update_asset(project_id, asset_id, data)
        self._invalidate_asset_views(project_id)
        return sub

    def delete_sub_asset(self, project_id: str, asset_id: str) -> None:
        self.source.delete_asset(project_id, asset_id)
        self._invalidate_asset_views(project_id)

    def mark_needs_update(self, project_id: str, asset_id: str, reasons: list[str], notes: str | None = None) -> dict:
        sub = self.source.request_update(project_id, asset_id, reasons, notes)
        self._invalidate_asset_views(project_id)
        return sub

    def add_version(self, project_id: str, asset_id: str, files: list[str], notes: str | None = None) -> dict:
        sub = self.source.add_version(project_id, asset_id, files, notes)
        self._invalidate_asset_views(project_id)
        return sub

    def bulk_update(self, project_id: str, ids: list[str], status: str | None = None, **extra: Any) -> dict:
        data: dict[str, Any] = {"ids": list(ids)}
        if status is not None:
            data["status"] = status
        if "assignee_user_id" in extra:
            data["assignee_user_id"] = extra["assignee_user_id"]
        result = self.source.bulk_update(project_id, data)
        self._invalidate_asset_views(project_id)
        return result

    # ── Uploads ────────────────────────────────────────────────────────

    def upload(self, project_id: str, files: list[tuple[str, bytes]], sub_asset_id: str | None = None) -> dict:
        job = self.source.upload(project_id, files, sub_asset_id)
        self.cache.invalidate(UPLOAD_JOBS, project_id)
        self._job_status[job["id"]] = job["status"]
        return job

    def upload_jobs(self, project_id: str) -> list[dict]:
        return self.cache.fetch(
            QueryCache.key(UPLOAD_JOBS, project_id),
            lambda: self.source.list_upload_jobs(project_id),
            stale_after=self.poll_interval,
        )

    def poll_upload_jobs(self, project_id: str) -> list[dict]:
        """Upload jobs, refetched when older than the poll interval.

        A job that finished since the last poll may have added a version,
        so asset views of the project are invalidated then.
        """
        jobs = self.upload_jobs(project_id)
        finished = False
        for job in jobs:
            previous = self._job_status.get(job["id"])
            if previous is not None and previous != job["status"] and job["status"] == "done":
                finished = True
            self._job_status[job["id"]] = job["status"]
        if finished:
            logger.info("Upload job finished in project %s; refreshing asset views", project_id)
            self._invalidate_asset_views(project_id)
        return jobs

    def cancel_upload_job(self, project_id: str, job_id: str) -> dict:
        job = self.source.cancel_upload_job(project_id, job_id)
        self.cache.invalidate(UPLOAD_JOBS, project_id)
        self._job_status[job["id"]] = job["status"]
        return job

    def validate(self, asset_type: str, files: list[str], required_format: str | None = None,
                 project_id: str | None = None) -> dict:
        return self.source.validate(asset_type, files, required_format, project_id)

    # ── Users ──────────────────────────────────────────────────────────

    def users(self) -> list[dict]:
        return self.cache.fetch(QueryCache.key(USERS), self.source.list_users)

    def current_user(self) -> dict:
        return self.cache.fetch(QueryCache.key(USERS, None, {"id": "me"}), self.source.get_current_user)
