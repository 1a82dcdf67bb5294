"""UI state for an asset table session.

An explicit object rather than a module-level singleton: each view owns
one, and tests build their own.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from assettrackr.client.datasource import AssetFilters


@dataclass
class UIState:
    selected_assets: list[str] = field(default_factory=list)
    search_query: str = ""
    status_filter: list[str] = field(default_factory=list)
    type_filter: list[str] = field(default_factory=list)
    is_uploading: bool = False
    upload_progress: int = 0
    drawer_open: bool = False
    selected_asset: str | None = None

    # Selection

    def toggle_asset_selection(self, asset_id: str) -> None:
        if asset_id in self.selected_assets:
            self.selected_assets = [a for a in self.selected_assets if a != asset_id]
        else:
            self.selected_assets = [*self.selected_assets, asset_id]

    def select_all(self, asset_ids: list[str]) -> None:
        self.selected_assets = list(dict.fromkeys(asset_ids))

    def clear_selection(self) -> None:
        self.selected_assets = []

    # Filters

    def set_search_query(self, query: str) -> None:
        self.search_query = query

    def set_status_filter(self, statuses: list[str]) -> None:
        self.status_filter = list(statuses)

    def set_type_filter(self, types: list[str]) -> None:
        self.type_filter = list(types)

    def clear_filters(self) -> None:
        self.search_query = ""
        self.status_filter = []
        self.type_filter = []

    def has_active_filters(self) -> bool:
        return bool(self.search_query or self.status_filter or self.type_filter)

    def filters(self) -> AssetFilters:
        return AssetFilters(
            search=self.search_query or None,
            status=tuple(self.status_filter),
            type=tuple(self.type_filter),
        )

    # Upload

    def set_uploading(self, uploading: bool) -> None:
        self.is_uploading = uploading
        if not uploading:
            self.upload_progress = 0

    def set_upload_progress(self, progress: int) -> None:
        self.upload_progress = max(0, min(100, int(progress)))

    # Drawer

    def open_drawer(self, asset_id: str) -> None:
        self.selected_asset = asset_id
        self.drawer_open = True

    def close_drawer(self) -> None:
        self.drawer_open = False
        self.selected_asset = None
