import pytest

from pagewiki.core.db import init_db, open_session


ADMIN_PASSWORD = "test-password"


@pytest.fixture(autouse=True)
def _env(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'pagewiki.db'}")
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.delenv("PAGEWIKI_HOME_SLUG", raising=False)
    init_db()


@pytest.fixture
def session():
    s = open_session()
    yield s
    s.close()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Password": ADMIN_PASSWORD}
