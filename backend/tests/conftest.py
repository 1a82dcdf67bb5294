"""Test configuration and fixtures."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from assettrackr.api.upload_jobs import get_upload_pipeline
from assettrackr.database import Base, build_engine, create_tables, get_db
from assettrackr.main import create_app
from assettrackr.services.scheduler import VirtualScheduler
from assettrackr.services.upload_service import UploadPipeline
from assettrackr.utils.seed import seed_demo_data

STAGE_DELAYS = {"validating": 2.0, "converting": 4.0, "opened_pr": 6.0, "done": 8.0}


@pytest.fixture
def engine():
    """In-memory SQLite database shared by every session of one test."""
    engine = build_engine("sqlite://")
    create_tables(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded_db(db_session):
    seed_demo_data(db_session)
    return db_session


@pytest.fixture
def scheduler():
    return VirtualScheduler()


@pytest.fixture
def pipeline(session_factory, scheduler):
    return UploadPipeline(session_factory, scheduler, STAGE_DELAYS)


@pytest.fixture
def client(session_factory, pipeline):
    """TestClient with the DB and upload pipeline swapped for test doubles.

    The lifespan is not entered, so nothing touches the on-disk database.
    """
    app = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_upload_pipeline] = lambda: pipeline
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def seeded_client(client, seeded_db):
    return client
