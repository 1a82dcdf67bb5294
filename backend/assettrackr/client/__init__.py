"""Client-side access to AssetTrackr: data sources, cache, façade and view models."""
from assettrackr.client.cache import QueryCache, filter_signature
from assettrackr.client.datasource import ApiError, AssetFilters, DataSource, create_data_source
from assettrackr.client.facade import AssetTrackerClient
from assettrackr.client.store import UIState

__all__ = [
    "ApiError",
    "AssetFilters",
    "AssetTrackerClient",
    "DataSource",
    "QueryCache",
    "UIState",
    "create_data_source",
    "filter_signature",
]
