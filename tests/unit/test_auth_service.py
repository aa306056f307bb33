from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

import backend.auth.service as auth_service
from backend.auth import repository as auth_repository


def test_determine_role():
    assert auth_service.determine_role({"role": "ADMIN"}) == "admin"
    assert auth_service.determine_role({"role": "user"}) == "user"
    assert auth_service.determine_role(None) == "user"

def test_get_user_from_token_prefers_app_metadata(monkeypatch):
    monkeypatch.setattr(
        "backend.auth.service._repo_get_user_from_token",
        lambda token: {
            "id": "u1",
            "email": "a@b.c",
            "app_metadata": {"role": "admin"},
            "user_metadata": {"role": "user"},
        },
    )
    user = auth_service.get_user_from_token("tok")
    assert user == {"id": "u1", "email": "a@b.c", "role": "admin", "token": "tok"}

def test_get_user_from_token_defaults_to_user(monkeypatch):
    monkeypatch.setattr("backend.auth.service._repo_get_user_from_token", lambda token: {"id": "u2"})
    assert auth_service.get_user_from_token("tok")["role"] == "user"

def test_repository_normalizes_supabase_user(monkeypatch):
    supa_user = SimpleNamespace(id="u1", email="a@b.c", user_metadata={}, app_metadata={"role": "admin"})
    client = MagicMock()
    client.auth.get_user.return_value = SimpleNamespace(user=supa_user)
    monkeypatch.setattr("backend.infra.supabase_client.get_supabase", lambda: client)

    user = auth_repository.get_user_from_access_token("tok")
    client.auth.get_user.assert_called_once_with("tok")
    assert user["id"] == "u1"
    assert user["app_metadata"] == {"role": "admin"}

def test_repository_propagates_supabase_error(monkeypatch):
    client = MagicMock()
    client.auth.get_user.side_effect = Exception("invalid JWT")
    monkeypatch.setattr("backend.infra.supabase_client.get_supabase", lambda: client)
    with pytest.raises(Exception):
        auth_repository.get_user_from_access_token("bad")
