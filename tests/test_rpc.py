"""Tests for the single-endpoint RPC binding."""

import pytest


def rpc(client, procedure, payload=None, **kwargs):
    return client.post(f"/rpc/{procedure}", json=payload if payload is not None else {}, **kwargs)


@pytest.fixture
def token(client):
    assert rpc(client, "register", {"email": "carol@example.com", "password": "secret123", "name": "Carol"}).status_code == 200
    response = rpc(client, "login", {"email": "carol@example.com", "password": "secret123"})
    assert response.status_code == 200
    return response.json()["token"]


def auth(token):
    return {"headers": {"Authorization": f"Bearer {token}"}}


class TestProcedures:
    def test_unknown_procedure(self, client):
        assert rpc(client, "dropTables").status_code == 404

    def test_register_conflict(self, client, token):
        response = rpc(client, "register", {"email": "carol@example.com", "password": "secret123", "name": "Carol"})
        assert response.status_code == 409

    def test_bad_login(self, client, token):
        assert rpc(client, "login", {"email": "carol@example.com", "password": "wrong-one"}).status_code == 401

    def test_invalid_input(self, client, token):
        response = rpc(client, "addEntry", {"title": "Trip"}, **auth(token))
        assert response.status_code == 400
        assert "content" in response.json()["detail"]

    def test_anonymous(self, client):
        assert rpc(client, "getEntries").status_code == 401

    def test_scenario(self, client, token):
        entry = rpc(client, "addEntry", {"title": "Trip", "content": "Went hiking"}, **auth(token)).json()
        entries = rpc(client, "getEntries", **auth(token)).json()
        assert [(e["title"], e["content"], e["id"]) for e in entries] == [("Trip", "Went hiking", entry["id"])]
        assert rpc(client, "deleteEntry", {"id": entry["id"]}, **auth(token)).json() == {"success": True}
        assert rpc(client, "getEntries", **auth(token)).json() == []
        assert rpc(client, "deleteEntry", {"id": entry["id"]}, **auth(token)).json() == {"success": True}

    def test_update_content_only(self, client, token):
        entry = rpc(client, "addEntry", {"title": "Trip", "content": "Went hiking"}, **auth(token)).json()
        updated = rpc(client, "updateEntry", {"id": entry["id"], "title": None, "content": "x"}, **auth(token)).json()
        assert (updated["title"], updated["content"]) == ("Trip", "x")

    def test_update_missing(self, client, token):
        assert rpc(client, "updateEntry", {"id": 31337, "title": "x"}, **auth(token)).status_code == 404

    def test_id_beyond_storage_range(self, client, token):
        response = rpc(client, "deleteEntry", {"id": 2**63}, **auth(token))
        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert rpc(client, "updateEntry", {"id": 2**63, "content": "x"}, **auth(token)).status_code == 404

    def test_logout(self, client, token):
        assert rpc(client, "logout", **auth(token)).json() == {"success": True}
        assert rpc(client, "getEntries", **auth(token)).status_code == 401
