"""Tests for the cached client façade."""
from collections import Counter

import pytest

from assettrackr.client.cache import QueryCache
from assettrackr.client.datasource import ApiError, AssetFilters
from assettrackr.client.facade import AssetTrackerClient
from assettrackr.client.fake import FakeDataSource
from assettrackr.services.scheduler import VirtualScheduler


class CountingSource:
    """Wraps a data source and counts calls per method."""

    def __init__(self, inner):
        self.inner = inner
        self.calls = Counter()

    def __getattr__(self, name):
        target = getattr(self.inner, name)

        def wrapper(*args, **kwargs):
            self.calls[name] += 1
            return target(*args, **kwargs)

        return wrapper


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def scheduler():
    return VirtualScheduler()


@pytest.fixture
def source(scheduler):
    return CountingSource(FakeDataSource(scheduler=scheduler))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def api(source, clock):
    cache = QueryCache(stale_seconds=300, max_retries=0, clock=clock, sleep=lambda s: None)
    return AssetTrackerClient(source, cache=cache, poll_interval=2)


class TestReadCaching:
    def test_repeat_reads_hit_cache(self, api, source):
        api.projects()
        api.projects()
        api.users()
        api.current_user()
        assert source.calls["list_projects"] == 1
        assert source.calls["list_users"] == 1
        assert source.calls["get_current_user"] == 1

    def test_filter_order_does_not_matter(self, api, source):
        api.assets("1", AssetFilters(status=("done", "review")))
        api.assets("1", AssetFilters(status=("review", "done")))
        api.assets("1", AssetFilters(status=("done",)))
        assert source.calls["list_assets"] == 2

    def test_entries_go_stale(self, api, source, clock):
        api.project("1")
        clock.now = 301
        api.project("1")
        assert source.calls["get_project"] == 2

    def test_errors_propagate(self, api):
        with pytest.raises(ApiError) as info:
            api.project("nope")
        assert info.value.status == 404


class TestInvalidation:
    def test_create_project_refreshes_list(self, api, source):
        assert len(api.projects()) == 2
        api.create_project("https://github.com/x/new")
        assert len(api.projects()) == 3
        assert source.calls["list_projects"] == 2

    def test_asset_write_refreshes_asset_views_only(self, api, source):
        api.projects()
        api.asset_groups("1")
        api.assets("1", AssetFilters(status=("done",)))
        api.asset_groups("2")

        api.update_sub_asset("1", "hero_model", {"status": "done"})

        statuses = [c["status"] for g in api.asset_groups("1") for c in g["children"] if c["id"] == "hero_model"]
        assert statuses == ["done"]
        assert [a["id"] for a in api.assets("1", AssetFilters(status=("done",)))] == [
            "hero_idle", "hero_model", "hero_theme",
        ]
        api.projects()
        api.asset_groups("2")
        assert source.calls["list_asset_groups"] == 3
        assert source.calls["list_projects"] == 1

    def test_settings_update(self, api, source):
        settings = api.project_settings("1")
        settings["validation_strict"] = True
        api.update_project_settings("1", settings)
        assert api.project_settings("1")["validation_strict"] is True
        assert source.calls["get_project_settings"] == 2

    def test_delete_project_drops_its_entries(self, api):
        api.project("2")
        api.asset_groups("2")
        api.delete_project("2")
        with pytest.raises(ApiError):
            api.project("2")
        with pytest.raises(ApiError):
            api.asset_groups("2")

    def test_bulk_update(self, api):
        api.assets("1")
        result = api.bulk_update("1", ["hero_run", "hero_model"], assignee_user_id="user2")
        assert result["errors"] == []
        assert {a["assignee_user_id"] for a in api.assets("1") if a["id"] in ("hero_run", "hero_model")} == {"user2"}


class TestUploadPolling:
    def test_jobs_refetched_after_poll_interval(self, api, source, clock):
        api.upload_jobs("1")
        clock.now = 1
        api.upload_jobs("1")
        clock.now = 2
        api.upload_jobs("1")
        assert source.calls["list_upload_jobs"] == 2

    def test_finished_job_refreshes_assets(self, api, source, clock, scheduler):
        before = api.asset("1", "ground_texture")
        assert before["current"]["version"] == 1

        job = api.upload("1", [("ground_texture.png", b"...")], sub_asset_id="ground_texture")
        assert job["id"] in [j["id"] for j in api.poll_upload_jobs("1")]

        scheduler.run_all()
        clock.now = 5
        jobs = {j["id"]: j for j in api.poll_upload_jobs("1")}
        assert jobs[job["id"]]["status"] == "done"

        after = api.asset("1", "ground_texture")
        assert after["current"]["version"] == 2
        assert after["status"] == "review"

    def test_cancel_refreshes_jobs(self, api):
        job = api.upload("1", [("a.png", b"")])
        api.upload_jobs("1")
        api.cancel_upload_job("1", job["id"])
        jobs = {j["id"]: j for j in api.upload_jobs("1")}
        assert jobs[job["id"]]["status"] == "failed"

    def test_validate_passes_through(self, api, source):
        api.validate("audio_sfx", ["hit.mp3"])
        api.validate("audio_sfx", ["hit.mp3"])
        assert source.calls["validate"] == 2
