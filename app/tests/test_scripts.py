"""
Operator scripts that run outside the request cycle.
"""
import importlib.util
import logging
from pathlib import Path

from sqlalchemy import inspect

from app import create_app
from app.extensions import db
from app.tests.conftest import TEST_CONFIG

ROOT = Path(__file__).resolve().parents[2]


def load_script(relative_path):
    spec = importlib.util.spec_from_file_location("create_tables_script", ROOT / relative_path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_create_tables_builds_and_reports_schema(tmp_path, monkeypatch, caplog):
    config = dict(TEST_CONFIG, SQLALCHEMY_DATABASE_URI=f"sqlite:///{tmp_path / 'schema.db'}")
    script = load_script("migrations/create_tables.py")
    monkeypatch.setattr(script, "create_app", lambda: create_app(config))
    caplog.set_level(logging.INFO)

    script.create_tables()

    assert "EventSync schema ready" in caplog.text
    assert "event_registrations:" in caplog.text
    check = create_app(config)
    with check.app_context():
        assert set(db.metadata.tables) <= set(inspect(db.engine).get_table_names())
        db.engine.dispose()
