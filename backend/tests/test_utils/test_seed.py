"""Tests for the demo dataset."""
from datetime import datetime

from assettrackr.models import AssetGroup, Project, SubAsset, UploadJob, User
from assettrackr.services.asset_service import check_head_invariant, load_history
from assettrackr.schemas.asset import CurrentVersion
from assettrackr.schemas.rules import validate_rules
from assettrackr.services.upload_service import can_advance
from assettrackr.utils.seed import seed_demo_data


class TestSeedDemoData:
    def test_inserts_everything(self, db_session):
        assert seed_demo_data(db_session) is True
        assert db_session.query(Project).count() == 2
        assert db_session.query(User).count() == 2
        assert db_session.query(AssetGroup).count() == 3
        assert db_session.query(SubAsset).count() == 7
        assert db_session.query(UploadJob).count() == 5

    def test_second_run_is_noop(self, db_session):
        seed_demo_data(db_session)
        assert seed_demo_data(db_session) is False
        assert db_session.query(Project).count() == 2

    def test_head_invariant_holds(self, seeded_db):
        for sub in seeded_db.query(SubAsset).all():
            current = CurrentVersion.model_validate(sub.current)
            assert check_head_invariant(current, load_history(sub)), sub.key

    def test_rules_match_schemas(self, seeded_db):
        for sub in seeded_db.query(SubAsset).all():
            assert validate_rules(sub.type, sub.rules) == sub.rules

    def test_job_transition_logs_are_legal(self, seeded_db):
        for job in seeded_db.query(UploadJob).all():
            steps = [t["status"] for t in job.transitions]
            assert steps[0] == "queued" and steps[-1] == job.status, job.id
            for current, target in zip(steps, steps[1:]):
                assert can_advance(current, target), (job.id, current, target)
            stamps = [datetime.fromisoformat(t["at"]) for t in job.transitions]
            assert stamps == sorted(stamps), job.id

    def test_failed_job_stopped_while_validating(self, seeded_db):
        job = seeded_db.query(UploadJob).filter(UploadJob.id == "4").one()
        assert [t["status"] for t in job.transitions] == ["queued", "validating", "failed"]
