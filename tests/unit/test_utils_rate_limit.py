# Import section
import time
from fastapi import FastAPI, Depends
from fastapi.testclient import TestClient
from storefront.utils.rate_limit import optional_rate_limit


def _make_app(times=2, seconds=60):
    app = FastAPI()

    @app.post("/initiate", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def initiate():
        return {"ok": True}

    @app.post("/initiateA", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def initiate_a():
        return {"ok": True}

    @app.post("/initiateB", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def initiate_b():
        return {"ok": True}

    return app


def test_rate_limit_fallback_blocks_after_limit(monkeypatch):
    app = _make_app(times=2, seconds=60)
    client = TestClient(app)
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    r1 = client.post("/initiate")
    r2 = client.post("/initiate")
    r3 = client.post("/initiate")

    assert r1.status_code == 200
    assert r2.status_code == 200
    assert r3.status_code == 429


def test_rate_limit_is_per_path_and_cookie(monkeypatch):
    app = _make_app(times=2, seconds=60)
    client = TestClient(app)
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    # Avec cookie de session, la clé inclut le hash + path
    client.cookies.set("sb_access", "some-session")

    assert client.post("/initiateA").status_code == 200
    assert client.post("/initiateA").status_code == 200
    assert client.post("/initiateA").status_code == 429

    # path B: indépendant de A
    assert client.post("/initiateB").status_code == 200
    assert client.post("/initiateB").status_code == 200
    assert client.post("/initiateB").status_code == 429


def test_rate_limit_resets_after_window_sleep(monkeypatch):
    app = _make_app(times=2, seconds=1)
    client = TestClient(app)
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    assert client.post("/initiate").status_code == 200
    assert client.post("/initiate").status_code == 200
    assert client.post("/initiate").status_code == 429

    # Attendre > 1s pour vider la fenêtre
    time.sleep(1.1)
    assert client.post("/initiate").status_code == 200


def test_rate_limit_disabled_flag_bypasses_limit(monkeypatch):
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    app = _make_app(times=2, seconds=60)
    client = TestClient(app)
    app.state.rate_limit_enabled = False

    for _ in range(4):
        assert client.post("/initiate").status_code == 200


def test_rate_limit_skipped_when_limiter_not_ready(monkeypatch):
    # Limiter non initialisé (pas de Redis): aucune 429
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    app = _make_app(times=1, seconds=60)
    client = TestClient(app)

    assert client.post("/initiate").status_code == 200
    assert client.post("/initiate").status_code == 200
