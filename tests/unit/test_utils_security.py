from types import SimpleNamespace
from unittest.mock import MagicMock

from fastapi import FastAPI, Depends
from fastapi.testclient import TestClient

from storefront.utils.security import determine_role, get_current_user, COOKIE_NAME


def _make_app():
    app = FastAPI()

    @app.get("/me")
    def me(user=Depends(get_current_user)):
        return user

    return app

def _auth_client(user=None, error=None):
    client = MagicMock()
    if error:
        client.auth.get_user.side_effect = error
    else:
        client.auth.get_user.return_value = SimpleNamespace(user=user)
    return client


def test_determine_role():
    assert determine_role({"role": "ADMIN"}) == "admin"
    assert determine_role({"role": "scanner"}) == "user"
    assert determine_role(None) == "user"

def test_missing_token_is_rejected():
    client = TestClient(_make_app())
    r = client.get("/me")
    assert r.status_code == 401
    assert r.json()["detail"] == "Not authenticated"

def test_bearer_token_resolves_user(monkeypatch):
    user = SimpleNamespace(id="u1", email="asha@example.com", user_metadata={"full_name": "Asha"})
    auth = _auth_client(user=user)
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: auth)

    r = TestClient(_make_app()).get("/me", headers={"Authorization": "Bearer tok-123"})

    assert r.status_code == 200
    assert r.json() == {"id": "u1", "email": "asha@example.com", "metadata": {"full_name": "Asha"}, "role": "user"}
    auth.auth.get_user.assert_called_once_with("tok-123")

def test_cookie_token_is_used_as_fallback(monkeypatch):
    user = SimpleNamespace(id="u2", email="b@example.com", user_metadata={})
    auth = _auth_client(user=user)
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: auth)

    client = TestClient(_make_app())
    client.cookies.set(COOKIE_NAME, "cookie-tok")
    r = client.get("/me")

    assert r.status_code == 200
    auth.auth.get_user.assert_called_once_with("cookie-tok")

def test_expired_token_is_rejected(monkeypatch):
    auth = _auth_client(error=Exception("jwt expired"))
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: auth)

    r = TestClient(_make_app()).get("/me", headers={"Authorization": "Bearer old"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Session expired, please log in again"

def test_require_admin_checks_role(monkeypatch):
    from storefront.utils.security import require_admin

    app = FastAPI()

    @app.get("/admin")
    def admin(user=Depends(require_admin)):
        return {"ok": True}

    def _user_with(metadata):
        return _auth_client(user=SimpleNamespace(id="u1", email="a@example.com", user_metadata=metadata))

    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: _user_with({}))
    r = TestClient(app).get("/admin", headers={"Authorization": "Bearer tok"})
    assert r.status_code == 403

    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: _user_with({"role": "admin"}))
    r = TestClient(app).get("/admin", headers={"Authorization": "Bearer tok"})
    assert r.status_code == 200
