"""
Tests for settings derived from the environment.
"""
from stickyboard import config


def test_database_url_quotes_credentials(monkeypatch):
    monkeypatch.setattr(config, "DATABASE_URL", None)
    monkeypatch.setattr(config, "DATABASE_USER", "board user")
    monkeypatch.setattr(config, "DATABASE_PASSWORD", "p@ss:w/rd%")
    monkeypatch.setattr(config, "DATABASE_HOST", "db")
    monkeypatch.setattr(config, "DATABASE_PORT", 6543)
    monkeypatch.setattr(config, "DATABASE_NAME", "notes")
    assert config.database_url() == "postgresql://board+user:p%40ss%3Aw%2Frd%25@db:6543/notes"


def test_database_url_override(monkeypatch):
    monkeypatch.setattr(config, "DATABASE_URL", "postgresql://u:p@elsewhere/db")
    assert config.database_url() == "postgresql://u:p@elsewhere/db"
