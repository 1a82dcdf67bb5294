"""Tests for upload, job status, cancel and validation endpoints."""
from assettrackr.api import upload_jobs
from assettrackr.config import Settings


def _upload(client, names=("hero.png",), project_id="1", sub_asset_id=None):
    data = {}
    if project_id is not None:
        data["projectId"] = project_id
    if sub_asset_id:
        data["subAssetId"] = sub_asset_id
    files = [("files", (name, b"\x89PNG data", "application/octet-stream")) for name in names]
    return client.post("/api/upload", data=data, files=files or None)


class TestUpload:
    def test_queues_job_and_runs_to_done(self, seeded_client, scheduler):
        resp = _upload(seeded_client, names=("hero.png", "hero_walk.png"))
        assert resp.status_code == 201
        job = resp.json()
        assert job["status"] == "queued"
        assert job["files"] == ["hero.png", "hero_walk.png"]

        scheduler.run_all()
        job = seeded_client.get(f"/api/projects/1/upload-jobs/{job['id']}").json()
        assert job["status"] == "done"
        assert [t["status"] for t in job["transitions"]] == [
            "queued", "validating", "converting", "opened_pr", "done",
        ]
        assert job["fixes_applied"] == [{"conversion": "auto-optimization", "tool": "AssetTrackr", "lossy": False}]

    def test_missing_files(self, seeded_client):
        resp = seeded_client.post("/api/upload", data={"projectId": "1"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Files and project ID are required"}

    def test_missing_project(self, seeded_client):
        resp = _upload(seeded_client, project_id=None)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Files and project ID are required"}

    def test_unknown_project(self, seeded_client):
        assert _upload(seeded_client, project_id="99").status_code == 404

    def test_file_names_sanitized(self, seeded_client):
        job = _upload(seeded_client, names=("../../hero idle.png",)).json()
        assert job["files"] == ["hero_idle.png"]

    def test_unusable_file_name_rejected(self, seeded_client):
        resp = _upload(seeded_client, names=("hero.png", ".."))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Rejected '..': invalid file name"}

    def test_size_limit(self, seeded_client, monkeypatch):
        monkeypatch.setattr(upload_jobs, "get_settings", lambda: Settings(MAX_UPLOAD_SIZE_MB=0))
        resp = _upload(seeded_client)
        assert resp.status_code == 400
        assert "exceeds" in resp.json()["error"]

    def test_targeted_upload(self, seeded_client, scheduler):
        job = _upload(seeded_client, names=("ground_texture.jpg",), sub_asset_id="ground_texture").json()
        assert job["sub_asset_id"] == "ground_texture"
        scheduler.run_all()
        asset = seeded_client.get("/api/projects/1/assets/ground_texture").json()
        assert asset["status"] == "review"
        assert asset["current"]["files"] == ["ground_texture.png"]


class TestUploadJobs:
    def test_list_newest_first(self, seeded_client):
        jobs = seeded_client.get("/api/projects/1/upload-jobs").json()
        assert [j["id"] for j in jobs] == ["3", "2", "4", "1", "5"]

    def test_get_missing(self, seeded_client):
        resp = seeded_client.get("/api/projects/1/upload-jobs/nope")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Upload job not found"}

    def test_cancel(self, seeded_client, scheduler):
        job = _upload(seeded_client).json()
        scheduler.advance(3)
        resp = seeded_client.post(f"/api/projects/1/upload-jobs/{job['id']}/cancel")
        assert resp.status_code == 200
        assert resp.json()["status"] == "failed"
        assert resp.json()["error_message"] == "Canceled by user"

        again = seeded_client.post(f"/api/projects/1/upload-jobs/{job['id']}/cancel")
        assert again.status_code == 409


class TestValidate:
    def test_registry_defaults(self, client):
        resp = client.post("/api/validate", json={"asset_type": "audio_sfx", "files": ["hit.mp3"]})
        assert resp.status_code == 200
        body = resp.json()
        assert body["asset_type"] == "audio_sfx"
        assert [f["rule_id"] for f in body["findings"]] == ["audio_sfx.format"]
        assert body["findings"][0]["severity"] == "error"

    def test_clean_files(self, client):
        resp = client.post(
            "/api/validate",
            json={"asset_type": "sprite_animation", "files": ["run_000.png", "run_001.png"], "required_format": "png"},
        )
        assert resp.json()["findings"] == []

    def test_unknown_type(self, client):
        resp = client.post("/api/validate", json={"asset_type": "hologram", "files": ["a.holo"]})
        assert resp.status_code == 400
