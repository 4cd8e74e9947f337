# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from bulkimport.logging.init import reset_logging
from bulkimport.models.config_models import EngineSettings
from bulkimport.store.base import ImportContext
from bulkimport.store.memory import InMemoryStore

ORG = "org-1"


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """organization_id: org-1
organization_name: Acme Pest Control
invited_by: owner-1
importer_role: admin
pace_every: 10
pace_seconds: 0
duplicate_phrases:
  - already exists
  - duplicate
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def mock_mode(monkeypatch):
    # DB には接続しない
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def context() -> ImportContext:
    return ImportContext(organization_id=ORG, invited_by="owner-1", importer_role="admin", organization_name="Acme")


@pytest.fixture()
def settings() -> EngineSettings:
    # pacing は無効化 (テスト高速化)
    return EngineSettings(pace_every=10, pace_seconds=0)


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()
