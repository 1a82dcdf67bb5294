"""Search and status/type filters over asset groups and sub-assets.

Filters run over already-fetched lists. An empty status or type set means
no filtering on that axis; search is a case-insensitive substring match
over the sub-asset key and description.
"""
from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from assettrackr.schemas.asset import AssetGroupResponse, SubAssetResponse


def parse_csv(value: str | None) -> list[str]:
    """Split an ``a,b`` query parameter, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _value(v) -> str:
    return v.value if isinstance(v, Enum) else str(v)


def matches_filters(
    sub_asset: SubAssetResponse,
    search: str | None = None,
    statuses: Iterable[str] | None = None,
    types: Iterable[str] | None = None,
) -> bool:
    if search:
        needle = search.lower()
        haystacks = (sub_asset.key, sub_asset.description or "")
        if not any(needle in h.lower() for h in haystacks):
            return False
    status_set = {_value(s) for s in statuses or ()}
    if status_set and _value(sub_asset.status) not in status_set:
        return False
    type_set = {_value(t) for t in types or ()}
    if type_set and _value(sub_asset.type) not in type_set:
        return False
    return True


def filter_sub_assets(
    sub_assets: Iterable[SubAssetResponse],
    search: str | None = None,
    statuses: Iterable[str] | None = None,
    types: Iterable[str] | None = None,
) -> list[SubAssetResponse]:
    statuses, types = list(statuses or ()), list(types or ())
    return [s for s in sub_assets if matches_filters(s, search, statuses, types)]


def filter_asset_groups(
    groups: Iterable[AssetGroupResponse],
    search: str | None = None,
    statuses: Iterable[str] | None = None,
    types: Iterable[str] | None = None,
) -> list[AssetGroupResponse]:
    """Keep groups with at least one matching child.

    Returned groups carry only their matching children; ``is_filtered`` is
    set when some children were hidden. Without any active filter every
    group is returned unchanged, empty ones included.
    """
    statuses, types = list(statuses or ()), list(types or ())
    if not (search or statuses or types):
        return list(groups)
    result = []
    for group in groups:
        children = filter_sub_assets(group.children, search, statuses, types)
        if not children:
            continue
        result.append(group.model_copy(update={
            "children": children,
            "is_filtered": len(children) < len(group.children),
        }))
    return result
