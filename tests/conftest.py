from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make the taskapi package importable when running from a plain checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from taskapi.core import config as core_config  # noqa: E402
from taskapi.core.rate_limiter import reset_rate_limits  # noqa: E402
from taskapi.core.security import hash_password  # noqa: E402
from taskapi.db import models  # noqa: E402
from taskapi.db import session as db_session  # noqa: E402
from taskapi.repositories.sql_repository import SQLRepository  # noqa: E402
from taskapi.services.task_service import TaskService  # noqa: E402


@pytest.fixture()
def db_env(tmp_path, monkeypatch):
    """Point the app at a temporary SQLite file and reset settings/engine caches."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("AUTH_RATE_LIMIT", "0")
    monkeypatch.setenv("LOG_FILE", "")
    core_config.get_settings.cache_clear()
    db_session.dispose_engine()
    reset_rate_limits()

    engine = db_session.get_engine()
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)

    yield db_file

    models.Base.metadata.drop_all(bind=db_session.get_engine())
    db_session.dispose_engine()
    core_config.get_settings.cache_clear()
    reset_rate_limits()


@pytest.fixture()
def repo(db_env) -> SQLRepository:
    return SQLRepository()


@pytest.fixture()
def service(repo) -> TaskService:
    return TaskService(repo)


@pytest.fixture()
def make_user(repo):
    def _make(name: str = "Ann", email: str = "ann@x.com", password: str = "pw1") -> str:
        return repo.create_user(name, email, hash_password(password)).id

    return _make


@pytest.fixture()
def owner(make_user) -> str:
    return make_user()
