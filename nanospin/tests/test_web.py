"""HTTP surface tests with FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from spinapp.logic import RaffleLogic
from spinapp.raffle_runner import RaffleRunner
from spinapp.security import sign_admin_token
from spinapp.state import SharedRaffle
from spinapp.web import create_app

from conftest import ADDR_A, ADDR_B, chat


SECRET = "test-secret"


class Clock:
    def __init__(self):
        self.t = 0.0

    def __call__(self):
        return self.t


@pytest.fixture
def setup():
    logic = RaffleLogic(RaffleRunner(interval=5.0))
    shared = SharedRaffle(logic)
    clock = Clock()
    client = TestClient(create_app(shared, SECRET, clock=clock))
    return client, logic, clock


def test_raffle_idle(setup):
    client, logic, clock = setup
    clock.t = 42.0
    r = client.get("/raffle")
    assert r.status_code == 200
    assert r.json() == {"spin": False, "participants": [], "winner": 0}
    assert logic.spinner_connected(43.0)


def test_raffle_spin_and_confirm(setup):
    client, logic, _ = setup
    logic.start()
    logic.handle_chat_message(chat("a", ADDR_A, name="Alice"))
    logic.handle_chat_message(chat("b", ADDR_B, name="Bob"))
    logic.tick(0.0, 0)
    logic.tick(5.0, 1)

    r = client.get("/raffle")
    assert r.json() == {"spin": True, "participants": ["Alice", "Bob"], "winner": 1}

    assert client.post("/confirm").status_code == 200
    assert client.get("/raffle").json()["spin"] is False
    actions = logic.tick(6.0, 0)
    assert logic.winners() == ["Bob"]
    assert len(actions) == 2


def test_confirm_without_win_is_harmless(setup):
    client, logic, _ = setup
    assert client.post("/confirm").status_code == 200
    assert logic.current_win() is None


def test_static_assets(setup):
    client, _, _ = setup
    r = client.get("/overlay.svg")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("image/svg+xml")
    r = client.get("/")
    assert r.status_code == 200
    assert "/raffle" in r.text
    assert client.get("/health").json() == {"ok": True}


def test_admin_requires_token(setup):
    client, _, _ = setup
    assert client.get("/admin/status", params={"token": "nope"}).status_code == 401
    bad = sign_admin_token("other-secret")
    assert client.post("/admin/start", params={"token": bad}).status_code == 401
    assert client.get("/admin/status").status_code == 422


def test_admin_control_flow(setup):
    client, logic, clock = setup
    token = sign_admin_token(SECRET)

    assert client.post("/admin/start", params={"token": token}).json() == {"running": True}
    assert logic.running

    r = client.post("/admin/chat", params={"token": token}, data={"user": "Alice", "message": f"hi {ADDR_A}"})
    assert r.json() == {"ok": True, "participants": 1}

    clock.t = 1.0
    status = client.get("/admin/status", params={"token": token}).json()
    assert status["running"] is True
    assert status["countdown"] == 5.0
    assert status["participants"] == ["Alice"]
    assert status["messages"] == [{"author": "Alice", "message": f"hi {ADDR_A}"}]
    assert status["spin_state"] == "waiting"
    assert status["spinner_connected"] is False

    client.post("/admin/run-now", params={"token": token})
    logic.tick(1.0, 0)
    assert logic.current_win().winner == "Alice"

    assert client.post("/admin/stop", params={"token": token}).json() == {"running": False}
    assert not logic.running
