from datetime import timedelta

import pytest
from sqlalchemy import inspect

import cli_users
from auth_service.challenge import PendingChallenge, utcnow
from auth_service.database import init_db
from auth_service.models import User
from auth_service.store import UserStore


@pytest.fixture
def cli_db(monkeypatch, engine, session_factory):
    monkeypatch.setattr(cli_users, "SessionLocal", session_factory)
    monkeypatch.setattr(cli_users, "init_db", lambda: init_db(engine))
    return engine


def test_show_prints_user(cli_db, db, capsys):
    user = UserStore.insert(db, User(phone="+15551234567", name="Alice", is_verified=True))
    UserStore.swap_challenge(
        db, user.id, user.challenge, PendingChallenge("482913", utcnow() + timedelta(minutes=10))
    )

    assert cli_users.main(["show", "+15551234567"]) == 0

    out = capsys.readouterr().out
    assert user.id in out
    assert "+15551234567" in out
    assert "verified:  yes" in out
    assert "challenge: pending" in out
    assert "482913" not in out


def test_show_unknown_phone(cli_db, capsys):
    assert cli_users.main(["show", "+19998887777"]) == 1
    assert "No user with phone +19998887777" in capsys.readouterr().out


def test_init_db_creates_tables(cli_db, capsys):
    assert cli_users.main(["init-db"]) == 0

    assert "Database tables checked/created" in capsys.readouterr().out
    assert {"users", "playlists"} <= set(inspect(cli_db).get_table_names())
