"""Tests for startup cleanup of interrupted upload jobs."""
from assettrackr.models import UploadJob
from assettrackr.utils.startup import cleanup_orphaned_jobs, prepare_jobs


def _jobs(db):
    db.expire_all()
    return {j.id: j for j in db.query(UploadJob).all()}


class TestCleanupOrphanedJobs:
    def test_marks_unfinished_jobs_failed(self, seeded_db, session_factory):
        assert cleanup_orphaned_jobs(session_factory) == 3

        jobs = _jobs(seeded_db)
        for job_id in ("2", "3", "5"):
            assert jobs[job_id].status == "failed"
            assert "server restart" in jobs[job_id].error_message
            assert jobs[job_id].transitions[-1]["status"] == "failed"
        assert jobs["1"].status == "done"
        assert jobs["4"].error_message == "File format validation failed: corrupted FBX header"

    def test_nothing_to_clean(self, db_session, session_factory):
        assert cleanup_orphaned_jobs(session_factory) == 0


class TestPrepareJobs:
    def test_fresh_seed_keeps_jobs_running(self, db_session, session_factory, pipeline, scheduler):
        assert prepare_jobs(session_factory, pipeline, seed=True) == 3

        jobs = _jobs(db_session)
        assert {j.status for j in jobs.values()} == {"done", "failed", "converting", "validating", "opened_pr"}
        assert all(j.error_message is None for j_id, j in jobs.items() if j_id != "4")
        assert sorted(pipeline.active_jobs()) == ["2", "3", "5"]

        scheduler.run_all()
        jobs = _jobs(db_session)
        assert [jobs[j].status for j in ("1", "2", "3", "4", "5")] == ["done", "done", "done", "failed", "done"]

    def test_restart_fails_leftover_jobs(self, seeded_db, session_factory, pipeline):
        assert prepare_jobs(session_factory, pipeline, seed=True) == 0
        assert pipeline.active_jobs() == []
        jobs = _jobs(seeded_db)
        assert jobs["2"].error_message.startswith("Job was interrupted by a server restart")

    def test_without_seed(self, db_session, session_factory, pipeline):
        assert prepare_jobs(session_factory, pipeline) == 0
        assert _jobs(db_session) == {}
