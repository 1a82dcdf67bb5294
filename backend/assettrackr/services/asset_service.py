"""Asset group and sub-asset operations.

Owns the versioning invariants: ``current.version`` always names exactly
one entry of ``history`` (the head), history only grows, and findings are
only ever appended to the head entry.
"""
from __future__ import annotations

import logging
from collections import Counter

from sqlalchemy.orm import Session

from assettrackr.exceptions import InvalidRequestError, NotFoundError
from assettrackr.models import AssetGroup, Project, SubAsset, User
from assettrackr.schemas.asset import (
    AssetGroupCreate,
    AssetVersion,
    BulkUpdateRequest,
    CurrentVersion,
    RuleFinding,
    SubAssetCreate,
    SubAssetUpdate,
)
from assettrackr.schemas.common import Severity, Status
from assettrackr.schemas.rules import validate_rules
from assettrackr.services import project_service
from assettrackr.services.rule_packs import RulePack, resolve_expected_formats, resolve_rule_pack
from assettrackr.services.status_machine import ensure_transition
from assettrackr.services.validation import validate_files

logger = logging.getLogger(__name__)


# ── Version helpers ────────────────────────────────────────────────────

def load_history(sub: SubAsset) -> list[AssetVersion]:
    return [AssetVersion.model_validate(v) for v in sub.history or []]


def store_history(sub: SubAsset, history: list[AssetVersion], current: CurrentVersion) -> None:
    # JSON columns are replaced, never mutated in place
    sub.history = [v.model_dump(mode="json") for v in history]
    sub.current = current.model_dump(mode="json")


def check_head_invariant(current: CurrentVersion, history: list[AssetVersion]) -> bool:
    """True when exactly one history entry carries ``current.version``."""
    return sum(1 for v in history if v.version == current.version) == 1


def head_index(current: CurrentVersion, history: list[AssetVersion]) -> int:
    for i, v in enumerate(history):
        if v.version == current.version:
            return i
    raise InvalidRequestError(f"History has no entry for current version {current.version}")


# ── Groups ─────────────────────────────────────────────────────────────

def list_asset_groups(db: Session, project_id: str) -> list[AssetGroup]:
    project_service.get_project(db, project_id)
    return (
        db.query(AssetGroup)
        .filter(AssetGroup.project_id == project_id)
        .order_by(AssetGroup.position.asc(), AssetGroup.created_at.asc())
        .all()
    )


def get_asset_group(db: Session, project_id: str, group_id: str) -> AssetGroup:
    group = (
        db.query(AssetGroup)
        .filter(AssetGroup.id == group_id, AssetGroup.project_id == project_id)
        .first()
    )
    if not group:
        raise NotFoundError("Asset group not found")
    return group


def create_asset_group(db: Session, project_id: str, payload: AssetGroupCreate) -> AssetGroup:
    project_service.get_project(db, project_id)
    exists = (
        db.query(AssetGroup)
        .filter(AssetGroup.project_id == project_id, AssetGroup.key == payload.key)
        .first()
    )
    if exists:
        raise InvalidRequestError(f"Asset group '{payload.key}' already exists")
    position = db.query(AssetGroup).filter(AssetGroup.project_id == project_id).count()
    group = AssetGroup(
        project_id=project_id,
        key=payload.key,
        title=payload.title,
        description=payload.description,
        base_path=payload.base_path,
        tags=list(payload.tags),
        position=position,
    )
    db.add(group)
    db.commit()
    db.refresh(group)
    logger.info("Created asset group %s in project %s", group.key, project_id)
    return group


def delete_asset_group(db: Session, project_id: str, group_id: str) -> None:
    group = get_asset_group(db, project_id, group_id)
    n_children = len(group.children)
    db.delete(group)
    db.commit()
    logger.info("Deleted asset group %s with %d sub-asset(s)", group.key, n_children)


# ── Sub-assets ─────────────────────────────────────────────────────────

def list_sub_assets(db: Session, project_id: str) -> list[SubAsset]:
    project_service.get_project(db, project_id)
    return (
        db.query(SubAsset)
        .join(AssetGroup, SubAsset.group_id == AssetGroup.id)
        .filter(AssetGroup.project_id == project_id)
        .order_by(AssetGroup.position.asc(), SubAsset.position.asc())
        .all()
    )


def get_sub_asset(db: Session, project_id: str, sub_asset_id: str) -> SubAsset:
    sub = (
        db.query(SubAsset)
        .join(AssetGroup, SubAsset.group_id == AssetGroup.id)
        .filter(SubAsset.id == sub_asset_id, AssetGroup.project_id == project_id)
        .first()
    )
    if not sub:
        raise NotFoundError("Sub-asset not found")
    return sub


def _ensure_user(db: Session, user_id: str | None) -> None:
    if user_id and not db.query(User).filter(User.id == user_id).first():
        raise NotFoundError("User not found")


def _auto_assignee(group: AssetGroup) -> str | None:
    """Most frequent assignee among the group's sub-assets."""
    counts = Counter(c.assignee_user_id for c in group.children if c.assignee_user_id)
    return counts.most_common(1)[0][0] if counts else None


def create_sub_asset(db: Session, project_id: str, group_id: str, payload: SubAssetCreate) -> SubAsset:
    """Create a sub-asset, filling blanks from the project's settings.

    Base path, required format and rules default to the project's values
    for the asset type. A sub-asset created without history gets a head
    entry for its current version.
    """
    project: Project = project_service.get_project(db, project_id)
    group = get_asset_group(db, project_id, group_id)
    if any(c.key == payload.key for c in group.children):
        raise InvalidRequestError(f"Sub-asset '{payload.key}' already exists in group '{group.key}'")

    settings = project_service.project_settings_dict(project)
    type_value = payload.type.value
    pack = resolve_rule_pack(type_value, settings)

    required_format = (payload.required_format or (pack.formats[0] if pack and pack.formats else "")).lower()
    if not required_format:
        raise InvalidRequestError("Required format is required")
    if pack and required_format not in pack.formats:
        raise InvalidRequestError(
            f"Format '{required_format}' is not allowed for {type_value} "
            f"(expected one of: {', '.join(pack.formats)})"
        )

    base_path = payload.base_path or (settings.get("default_base_paths") or {}).get(type_value) or group.base_path
    rules = validate_rules(type_value, payload.rules if payload.rules is not None else (pack.rules if pack else {}))

    current = payload.current or CurrentVersion()
    if payload.history:
        history = list(payload.history)
        if len({v.version for v in history}) != len(history):
            raise InvalidRequestError("History versions must be unique")
        if not check_head_invariant(current, history):
            raise InvalidRequestError("Current version must match exactly one history entry")
    else:
        history = [AssetVersion(version=current.version, files=list(current.files))]

    assignee = payload.assignee_user_id
    if assignee is None and settings.get("auto_assign"):
        assignee = _auto_assignee(group)
    _ensure_user(db, assignee)

    sub = SubAsset(
        group_id=group.id,
        key=payload.key,
        type=type_value,
        required_format=required_format,
        versioning=payload.versioning.value,
        base_path=base_path,
        path_template=payload.path_template or None,
        description=payload.description,
        rules=rules,
        status=payload.status.value,
        assignee_user_id=assignee,
        position=len(group.children),
    )
    store_history(sub, history, current)
    db.add(sub)
    db.commit()
    db.refresh(sub)
    logger.info("Created sub-asset %s (%s) in group %s", sub.key, sub.type, group.key)
    return sub


def update_sub_asset(db: Session, project_id: str, sub_asset_id: str, payload: SubAssetUpdate) -> SubAsset:
    """Apply a partial update. Status changes go through the lifecycle guard."""
    sub = get_sub_asset(db, project_id, sub_asset_id)
    data = payload.model_dump(exclude_unset=True)

    status = data.pop("status", None)
    if status is not None:
        data["status"] = ensure_transition(sub.status, status).value
    if "assignee_user_id" in data:
        _ensure_user(db, data["assignee_user_id"])
    if data.get("rules") is not None:
        data["rules"] = validate_rules(sub.type, data["rules"])
    if data.get("versioning") is not None:
        data["versioning"] = data["versioning"].value
    if "required_format" in data:
        if not (data["required_format"] or "").strip():
            raise InvalidRequestError("Required format cannot be blank")
        data["required_format"] = data["required_format"].strip().lower()
        project = project_service.get_project(db, project_id)
        allowed = resolve_expected_formats(sub.type, project_service.project_settings_dict(project))
        if allowed and data["required_format"] not in allowed:
            raise InvalidRequestError(
                f"Format '{data['required_format']}' is not allowed for {sub.type}"
            )

    for field, value in data.items():
        if value is None and field not in ("assignee_user_id", "description", "path_template"):
            continue
        setattr(sub, field, value)
    db.commit()
    db.refresh(sub)
    return sub


def delete_sub_asset(db: Session, project_id: str, sub_asset_id: str) -> None:
    sub = get_sub_asset(db, project_id, sub_asset_id)
    db.delete(sub)
    db.commit()
    logger.info("Deleted sub-asset %s", sub.key)


def mark_needs_update(
    db: Session,
    project_id: str,
    sub_asset_id: str,
    reasons: list[str],
    notes: str | None = None,
) -> SubAsset:
    """Flag a sub-asset for rework.

    Each reason becomes one ``info`` finding appended to the head entry;
    earlier findings are kept. Notes, when given, replace the head notes.
    """
    sub = get_sub_asset(db, project_id, sub_asset_id)
    sub.status = ensure_transition(sub.status, Status.NEEDS_UPDATE).value

    current = CurrentVersion.model_validate(sub.current)
    history = load_history(sub)
    idx = head_index(current, history)
    head = history[idx]
    new_findings = [
        RuleFinding(
            rule_id=f"manual_{i}",
            severity=Severity.INFO,
            expected="Compliant",
            actual=reason,
            message=reason,
            evidence_paths=[],
        )
        for i, reason in enumerate(reasons)
    ]
    history[idx] = head.model_copy(update={
        "findings": [*head.findings, *new_findings],
        "notes": notes if notes else head.notes,
    })
    store_history(sub, history, current)
    db.commit()
    db.refresh(sub)
    logger.info("Marked %s for update (%d reason(s))", sub.key, len(reasons))
    return sub


def validate_delivery(db: Session, project_id: str, sub: SubAsset, files: list[str]) -> list[RuleFinding]:
    """Validate *files* as a delivery for *sub* under the project's rules."""
    settings = project_service.project_settings_dict(project_service.get_project(db, project_id))
    pack = resolve_rule_pack(sub.type, settings)
    if pack is not None and sub.rules:
        # The sub-asset's own parameters take precedence over the pack's
        pack = RulePack(pack.asset_type, pack.formats, {**pack.rules, **sub.rules})
    return validate_files(pack, files, sub.required_format, strict=bool(settings.get("validation_strict")))


def add_version(
    db: Session,
    project_id: str,
    sub_asset_id: str,
    files: list[str],
    notes: str | None = None,
    findings: list[RuleFinding] | None = None,
) -> SubAsset:
    """Append a new version and make it the head.

    The version number is one past the highest in history. When
    *findings* is ``None`` the files are validated first.
    """
    if not files:
        raise InvalidRequestError("A version needs at least one file")
    sub = get_sub_asset(db, project_id, sub_asset_id)
    history = load_history(sub)
    if findings is None:
        findings = validate_delivery(db, project_id, sub, files)
    version = max((v.version for v in history), default=0) + 1
    history.append(AssetVersion(version=version, files=list(files), notes=notes, findings=list(findings)))
    store_history(sub, history, CurrentVersion(version=version, files=list(files)))
    db.commit()
    db.refresh(sub)
    logger.info("Added v%d to %s (%d file(s), %d finding(s))", version, sub.key, len(files), len(findings))
    return sub


def bulk_update(db: Session, project_id: str, payload: BulkUpdateRequest) -> tuple[list[SubAsset], list[str]]:
    """Apply a status and/or assignee to many sub-assets.

    Illegal moves are reported per sub-asset and do not stop the batch.
    """
    if payload.status is None and "assignee_user_id" not in payload.model_fields_set:
        raise InvalidRequestError("Nothing to update")
    _ensure_user(db, payload.assignee_user_id)
    updated: list[SubAsset] = []
    errors: list[str] = []
    for sub_id in payload.ids:
        try:
            sub = get_sub_asset(db, project_id, sub_id)
            if payload.status is not None:
                sub.status = ensure_transition(sub.status, payload.status).value
            if "assignee_user_id" in payload.model_fields_set:
                sub.assignee_user_id = payload.assignee_user_id
            updated.append(sub)
        except (NotFoundError, InvalidRequestError) as exc:
            errors.append(f"{sub_id}: {exc.message}")
    db.commit()
    for sub in updated:
        db.refresh(sub)
    return updated, errors


def preview_validation(
    db: Session,
    asset_type: str,
    files: list[str],
    required_format: str | None = None,
    project_id: str | None = None,
) -> list[RuleFinding]:
    """Findings *files* would get, without touching any sub-asset.

    With a project the project's rule packs and strictness apply,
    otherwise the registry defaults.
    """
    settings: dict = {}
    if project_id:
        settings = project_service.project_settings_dict(project_service.get_project(db, project_id))
    pack = resolve_rule_pack(asset_type, settings)
    return validate_files(pack, files, required_format, strict=bool(settings.get("validation_strict")))


def bulk_update_status(db: Session, project_id: str, ids: list[str], status: Status | str):
    return bulk_update(db, project_id, BulkUpdateRequest(ids=ids, status=Status(status)))


def bulk_assign(db: Session, project_id: str, ids: list[str], user_id: str | None):
    return bulk_update(db, project_id, BulkUpdateRequest(ids=ids, assignee_user_id=user_id))
