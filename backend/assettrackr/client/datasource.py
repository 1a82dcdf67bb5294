"""The data source contract shared by the live HTTP client and the in-memory fake.

Every method returns plain JSON-shaped data (dicts and lists), exactly as
the HTTP API renders it, so callers never know which source they talk to.
The source is picked once, explicitly, by ``create_data_source``; there is
no fallback from one to the other at runtime.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from assettrackr.config import Settings, get_settings


class ApiError(Exception):
    """A failed data source call.

    ``status`` is the HTTP status code, or 0 when the server could not be
    reached at all.
    """

    def __init__(self, message: str, status: int = 0, response: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.response = response

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status < 500

    def __repr__(self) -> str:
        return f"ApiError({self.message!r}, status={self.status})"


@dataclass(frozen=True)
class AssetFilters:
    search: str | None = None
    status: tuple[str, ...] = field(default_factory=tuple)
    type: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_active(self) -> bool:
        return bool(self.search or self.status or self.type)

    def to_params(self) -> dict[str, str]:
        """Query parameters as the HTTP API expects them."""
        params = {}
        if self.search:
            params["search"] = self.search
        if self.status:
            params["status"] = ",".join(self.status)
        if self.type:
            params["type"] = ",".join(self.type)
        return params


class DataSource(Protocol):
    # Projects
    def list_projects(self) -> list[dict]: ...
    def get_project(self, project_id: str) -> dict: ...
    def create_project(self, repo_url: str) -> dict: ...
    def update_project(self, project_id: str, data: dict) -> dict: ...
    def delete_project(self, project_id: str) -> None: ...
    def sync_project(self, project_id: str) -> dict: ...
    def get_project_settings(self, project_id: str) -> dict: ...
    def update_project_settings(self, project_id: str, settings: dict) -> dict: ...

    # Sub-assets
    def list_assets(self, project_id: str, filters: AssetFilters | None = None) -> list[dict]: ...
    def get_asset(self, project_id: str, asset_id: str) -> dict: ...
    def update_asset(self, project_id: str, asset_id: str, data: dict) -> dict: ...
    def delete_asset(self, project_id: str, asset_id: str) -> None: ...
    def request_update(self, project_id: str, asset_id: str, reasons: list[str], notes: str | None = None) -> dict: ...
    def add_version(self, project_id: str, asset_id: str, files: list[str], notes: str | None = None) -> dict: ...
    def bulk_update(self, project_id: str, data: dict) -> dict: ...

    # Asset groups
    def list_asset_groups(self, project_id: str, filters: AssetFilters | None = None) -> list[dict]: ...
    def get_asset_group(self, project_id: str, group_id: str) -> dict: ...
    def create_asset_group(self, project_id: str, data: dict) -> dict: ...
    def delete_asset_group(self, project_id: str, group_id: str) -> None: ...
    def create_sub_asset(self, project_id: str, group_id: str, data: dict) -> dict: ...

    # Uploads
    def upload(self, project_id: str, files: list[tuple[str, bytes]], sub_asset_id: str | None = None) -> dict: ...
    def list_upload_jobs(self, project_id: str) -> list[dict]: ...
    def get_upload_job(self, project_id: str, job_id: str) -> dict: ...
    def cancel_upload_job(self, project_id: str, job_id: str) -> dict: ...
    def validate(self, asset_type: str, files: list[str], required_format: str | None = None,
                 project_id: str | None = None) -> dict: ...

    # Users
    def list_users(self) -> list[dict]: ...
    def get_current_user(self) -> dict: ...
    def get_user(self, user_id: str) -> dict: ...


def create_data_source(settings: Settings | None = None) -> DataSource:
    """Build the data source named by ``DATA_SOURCE`` (``live`` or ``fake``)."""
    settings = settings or get_settings()
    kind = settings.DATA_SOURCE.strip().lower()
    if kind == "live":
        from assettrackr.client.live import LiveDataSource
        return LiveDataSource(settings.API_BASE_URL, timeout=settings.HTTP_TIMEOUT_SECONDS)
    if kind == "fake":
        from assettrackr.client.fake import FakeDataSource
        return FakeDataSource(delays=settings.upload_stage_delays)
    raise ValueError(f"Unknown DATA_SOURCE '{settings.DATA_SOURCE}' (expected 'live' or 'fake')")
