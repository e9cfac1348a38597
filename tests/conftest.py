import os
import pytest
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("PYTEST_RUNNING", "1")

from devsync.db import models
from devsync.db.database import create_db_engine
from devsync.utils.feature_flags import refresh_settings_cache


@pytest.fixture(autouse=True)
def _settings_env(monkeypatch):
    """Known limits and no real email for every test; settings are re-read."""
    for var in ("APP_ENV", "EMAIL_ENABLED", "DEV_MODE", "FREE_TIER_MEMBER_LIMIT",
                "FREE_TIER_WORKSPACE_LIMIT", "INVITE_TTL_DAYS", "APP_HOST"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("APP_BASE_URL", "https://app.devsync.test")
    refresh_settings_cache()
    yield
    refresh_settings_cache()


# Per-test SQLite database (fresh schema, no cleanup needed)
@pytest.fixture
def db_engine():
    engine = create_db_engine("sqlite+pysqlite:///:memory:")
    models.Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def db_session(db_engine):
    session = sessionmaker(bind=db_engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()
