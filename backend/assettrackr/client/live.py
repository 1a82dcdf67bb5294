"""HTTP data source backed by httpx."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from assettrackr.client.datasource import ApiError, AssetFilters

logger = logging.getLogger(__name__)


class LiveDataSource:
    """Talks to a running AssetTrackr API at *base_url* (``.../api``)."""

    def __init__(self, base_url: str, timeout: float = 30.0, transport: httpx.BaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout, connect=min(timeout, 15.0)),
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "LiveDataSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(f"Network error: {exc}", status=0) from exc

        if resp.is_success and (resp.status_code == 204 or not resp.content):
            return None
        try:
            body = resp.json()
        except ValueError:
            body = None
        if not resp.is_success:
            message = body.get("error") if isinstance(body, dict) else None
            raise ApiError(message or resp.reason_phrase or f"HTTP {resp.status_code}", resp.status_code, body)
        return body

    # ── Projects ───────────────────────────────────────────────────────

    def list_projects(self) -> list[dict]:
        return self._request("GET", "/projects")

    def get_project(self, project_id: str) -> dict:
        return self._request("GET", f"/projects/{project_id}")

    def create_project(self, repo_url: str) -> dict:
        return self._request("POST", "/projects", json={"repo_url": repo_url})

    def update_project(self, project_id: str, data: dict) -> dict:
        return self._request("PATCH", f"/projects/{project_id}", json=data)

    def delete_project(self, project_id: str) -> None:
        self._request("DELETE", f"/projects/{project_id}")

    def sync_project(self, project_id: str) -> dict:
        return self._request("POST", f"/projects/{project_id}/sync")

    def get_project_settings(self, project_id: str) -> dict:
        return self._request("GET", f"/projects/{project_id}/settings")

    def update_project_settings(self, project_id: str, settings: dict) -> dict:
        return self._request("PUT", f"/projects/{project_id}/settings", json=settings)

    # ── Sub-assets ─────────────────────────────────────────────────────

    def list_assets(self, project_id: str, filters: AssetFilters | None = None) -> list[dict]:
        params = filters.to_params() if filters else {}
        return self._request("GET", f"/projects/{project_id}/assets", params=params)

    def get_asset(self, project_id: str, asset_id: str) -> dict:
        return self._request("GET", f"/projects/{project_id}/assets/{asset_id}")

    def update_asset(self, project_id: str, asset_id: str, data: dict) -> dict:
        return self._request("PATCH", f"/projects/{project_id}/assets/{asset_id}", json=data)

    def delete_asset(self, project_id: str, asset_id: str) -> None:
        self._request("DELETE", f"/projects/{project_id}/assets/{asset_id}")

    def request_update(self, project_id: str, asset_id: str, reasons: list[str], notes: str | None = None) -> dict:
        return self._request(
            "POST", f"/projects/{project_id}/assets/{asset_id}/request-update",
            json={"reasons": reasons, "notes": notes},
        )

    def add_version(self, project_id: str, asset_id: str, files: list[str], notes: str | None = None) -> dict:
        return self._request(
            "POST", f"/projects/{project_id}/assets/{asset_id}/versions",
            json={"files": files, "notes": notes},
        )

    def bulk_update(self, project_id: str, data: dict) -> dict:
        return self._request("POST", f"/projects/{project_id}/assets/bulk", json=data)

    # ── Asset groups ───────────────────────────────────────────────────

    def list_asset_groups(self, project_id: str, filters: AssetFilters | None = None) -> list[dict]:
        params = filters.to_params() if filters else {}
        return self._request("GET", f"/projects/{project_id}/asset-groups", params=params)

    def get_asset_group(self, project_id: str, group_id: str) -> dict:
        return self._request("GET", f"/projects/{project_id}/asset-groups/{group_id}")

    def create_asset_group(self, project_id: str, data: dict) -> dict:
        return self._request("POST", f"/projects/{project_id}/asset-groups", json=data)

    def delete_asset_group(self, project_id: str, group_id: str) -> None:
        self._request("DELETE", f"/projects/{project_id}/asset-groups/{group_id}")

    def create_sub_asset(self, project_id: str, group_id: str, data: dict) -> dict:
        return self._request("POST", f"/projects/{project_id}/asset-groups/{group_id}/sub-assets", json=data)

    # ── Uploads ────────────────────────────────────────────────────────

    def upload(self, project_id: str, files: list[tuple[str, bytes]], sub_asset_id: str | None = None) -> dict:
        form = {"projectId": project_id}
        if sub_asset_id:
            form["subAssetId"] = sub_asset_id
        multipart = [("files", (name, content)) for name, content in files]
        return self._request("POST", "/upload", data=form, files=multipart or None)

    def list_upload_jobs(self, project_id: str) -> list[dict]:
        return self._request("GET", f"/projects/{project_id}/upload-jobs")

    def get_upload_job(self, project_id: str, job_id: str) -> dict:
        return self._request("GET", f"/projects/{project_id}/upload-jobs/{job_id}")

    def cancel_upload_job(self, project_id: str, job_id: str) -> dict:
        return self._request("POST", f"/projects/{project_id}/upload-jobs/{job_id}/cancel")

    def validate(self, asset_type: str, files: list[str], required_format: str | None = None,
                 project_id: str | None = None) -> dict:
        return self._request("POST", "/validate", json={
            "asset_type": asset_type,
            "files": files,
            "required_format": required_format,
            "project_id": project_id,
        })

    # ── Users ──────────────────────────────────────────────────────────

    def list_users(self) -> list[dict]:
        return self._request("GET", "/users")

    def get_current_user(self) -> dict:
        return self._request("GET", "/users/me")

    def get_user(self, user_id: str) -> dict:
        return self._request("GET", f"/users/{user_id}")
