"""View models for the hierarchical asset table and the upload jobs panel.

Inputs are the JSON documents a ``DataSource`` returns; outputs are plain
dataclasses a presentation layer can render without further logic.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from assettrackr.client.store import UIState
from assettrackr.schemas.asset import AssetGroupResponse
from assettrackr.schemas.common import STATUS_LABELS, Severity, Status
from assettrackr.services.filtering import filter_asset_groups
from assettrackr.utils.paths import resolve_path_preview


@dataclass
class SubAssetRow:
    id: str
    key: str
    type: str
    status: str
    status_label: str
    version: int
    file_count: int
    assignee_user_id: str | None
    assignee_name: str | None
    error_count: int
    warning_count: int
    path_preview: str
    selected: bool


@dataclass
class GroupRow:
    id: str
    key: str
    title: str
    base_path: str
    tags: list[str]
    is_filtered: bool
    children: list[SubAssetRow] = field(default_factory=list)


@dataclass
class UploadJobSummary:
    id: str
    status: str
    file_count: int
    headline: str
    fixes: list[str]
    is_active: bool
    error_message: str | None = None


def _head_findings(sub) -> list:
    for entry in sub.history:
        if entry.version == sub.current.version:
            return entry.findings
    return []


def _sub_asset_row(sub, state: UIState, users: dict[str, str]) -> SubAssetRow:
    findings = _head_findings(sub)
    first_file = sub.current.files[0] if sub.current.files else ""
    ext = first_file.rsplit(".", 1)[-1].lower() if "." in first_file else sub.required_format
    return SubAssetRow(
        id=sub.id,
        key=sub.key,
        type=sub.type.value,
        status=sub.status.value,
        status_label=STATUS_LABELS[Status(sub.status)],
        version=sub.current.version,
        file_count=len(sub.current.files),
        assignee_user_id=sub.assignee_user_id,
        assignee_name=users.get(sub.assignee_user_id) if sub.assignee_user_id else None,
        error_count=sum(1 for f in findings if f.severity == Severity.ERROR),
        warning_count=sum(1 for f in findings if f.severity == Severity.WARN),
        path_preview=resolve_path_preview(
            base=sub.base_path,
            key=sub.key,
            version=sub.current.version,
            ext=ext,
            template=sub.path_template or "",
        ),
        selected=sub.id in state.selected_assets,
    )


def build_asset_table(
    groups: list[dict],
    state: UIState,
    users: list[dict] | None = None,
) -> list[GroupRow]:
    """Group rows for the table, applying the state's search and filters."""
    names = {u["id"]: u["name"] for u in users or []}
    parsed = [AssetGroupResponse.model_validate(g) for g in groups]
    visible = filter_asset_groups(parsed, state.search_query, state.status_filter, state.type_filter)
    return [
        GroupRow(
            id=g.id,
            key=g.key,
            title=g.title,
            base_path=g.base_path,
            tags=list(g.tags),
            is_filtered=g.is_filtered,
            children=[_sub_asset_row(c, state, names) for c in g.children],
        )
        for g in visible
    ]


def visible_sub_asset_ids(rows: list[GroupRow]) -> list[str]:
    return [c.id for g in rows for c in g.children]


def summarize_upload_job(job: dict) -> UploadJobSummary:
    files = job.get("files") or []
    status = job["status"]
    if len(files) == 1:
        headline = files[0]
    else:
        headline = f"{len(files)} files"
    fixes = [
        f"{fix['conversion']} ({fix['tool']}{', lossy' if fix.get('lossy') else ''})"
        for fix in job.get("fixes_applied") or []
    ]
    return UploadJobSummary(
        id=job["id"],
        status=status,
        file_count=len(files),
        headline=headline,
        fixes=fixes,
        is_active=status not in ("done", "failed"),
        error_message=job.get("error_message"),
    )
