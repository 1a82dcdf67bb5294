"""Tests for the httpx-backed data source."""
import json

import httpx
import pytest

from assettrackr.client.datasource import ApiError, AssetFilters, create_data_source
from assettrackr.client.fake import FakeDataSource
from assettrackr.client.live import LiveDataSource
from assettrackr.config import Settings


def make_source(handler):
    return LiveDataSource("http://tracker.test/api", transport=httpx.MockTransport(handler))


class TestRequests:
    def test_paths_and_json(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path))
            return httpx.Response(200, json=[{"id": "1"}])

        with make_source(handler) as source:
            assert source.list_projects() == [{"id": "1"}]
            source.list_upload_jobs("1")
        assert seen == [("GET", "/api/projects"), ("GET", "/api/projects/1/upload-jobs")]

    def test_filters_become_query_params(self):
        seen = {}

        def handler(request):
            seen.update(request.url.params)
            return httpx.Response(200, json=[])

        make_source(handler).list_assets("1", AssetFilters(search="hero", status=("done", "review")))
        assert seen == {"search": "hero", "status": "done,review"}

    def test_json_body(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={"id": "p"})

        make_source(handler).create_project("https://github.com/x/y")
        assert bodies == [{"repo_url": "https://github.com/x/y"}]

    def test_upload_is_multipart(self):
        captured = {}

        def handler(request):
            captured["type"] = request.headers["content-type"]
            captured["body"] = request.read()
            return httpx.Response(201, json={"id": "j", "status": "queued"})

        make_source(handler).upload("1", [("hero.png", b"png-bytes")], sub_asset_id="hero_sprite")
        assert captured["type"].startswith("multipart/form-data")
        assert b'name="projectId"' in captured["body"]
        assert b'name="subAssetId"' in captured["body"]
        assert b'filename="hero.png"' in captured["body"]

    def test_no_content(self):
        source = make_source(lambda request: httpx.Response(204))
        assert source.delete_project("1") is None


class TestErrors:
    def test_error_body_message(self):
        source = make_source(lambda request: httpx.Response(404, json={"error": "Project not found"}))
        with pytest.raises(ApiError) as info:
            source.get_project("nope")
        assert info.value.message == "Project not found"
        assert info.value.status == 404
        assert info.value.is_client_error
        assert info.value.response == {"error": "Project not found"}

    def test_non_json_error(self):
        source = make_source(lambda request: httpx.Response(502, text="<html>bad gateway</html>"))
        with pytest.raises(ApiError) as info:
            source.list_users()
        assert info.value.status == 502
        assert info.value.message == "Bad Gateway"
        assert not info.value.is_client_error

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ApiError) as info:
            make_source(handler).list_projects()
        assert info.value.status == 0
        assert info.value.message.startswith("Network error")


class TestCreateDataSource:
    def test_live(self):
        source = create_data_source(Settings(DATA_SOURCE="live", API_BASE_URL="http://example.test/api/"))
        assert isinstance(source, LiveDataSource)
        assert source.base_url == "http://example.test/api"
        source.close()

    def test_fake(self):
        assert isinstance(create_data_source(Settings(DATA_SOURCE="Fake")), FakeDataSource)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown DATA_SOURCE"):
            create_data_source(Settings(DATA_SOURCE="mock"))
