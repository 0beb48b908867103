"""HTTP API tests."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from ballot import config
from ballot.lib import persistence
from ballot.lib.persistence import SessionStore
from ballot.api.events import stream_events
from ballot.main import create_app
from helpers import ADMIN, BOB, CAROL, MALLORY


@pytest.fixture
def client(tmp_path, monkeypatch):
    settings = config.Settings(admin_identity=ADMIN, state_file=tmp_path / "session.json")
    monkeypatch.setattr(config, "_settings", settings)
    monkeypatch.setattr(persistence, "_default_store", SessionStore(settings))

    with TestClient(create_app()) as test_client:
        yield test_client


def as_caller(identity: str) -> dict[str, str]:
    return {"X-Caller-Id": identity}


def advance(client: TestClient, action: str, caller: str = ADMIN):
    return client.post(f"/api/phases/{action}", headers=as_caller(caller))


def test_health(client):
    r = client.get("/health")

    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_full_session_over_http(client):
    for voter in (BOB, CAROL):
        r = client.post("/api/voters", json={"identity": voter}, headers=as_caller(ADMIN))
        assert r.status_code == 201, r.text
        assert r.json()["is_registered"] is True

    r = advance(client, "start-proposals-registration")
    assert r.json() == {
        "previous_phase": "registering_voters",
        "new_phase": "proposals_registration_started",
    }

    r = client.post("/api/proposals", json={"description": "X"}, headers=as_caller(BOB))
    assert r.status_code == 201
    assert r.json() == {"proposal_index": 0}
    r = client.post("/api/proposals", json={"description": "Y"}, headers=as_caller(CAROL))
    assert r.json() == {"proposal_index": 1}

    assert advance(client, "stop-proposals-registration").status_code == 200
    assert advance(client, "start-voting-session").status_code == 200

    r = client.post("/api/votes", json={"proposal_index": 1}, headers=as_caller(BOB))
    assert r.status_code == 201
    r = client.post("/api/votes", json={"proposal_index": 1}, headers=as_caller(CAROL))
    assert r.status_code == 201

    r = client.get(f"/api/voters/{BOB}/vote", headers=as_caller(CAROL))
    assert r.json() == {"identity": BOB, "proposal_index": 1}

    assert advance(client, "stop-voting-session").status_code == 200
    assert advance(client, "tally-votes").status_code == 200

    r = client.get("/api/winner")
    assert r.status_code == 200
    assert r.json() == {"proposal_index": 1, "description": "Y"}

    status = client.get("/api/session").json()
    assert status["phase"] == "votes_tallied"
    assert status["winning_proposal_index"] == 1
    assert status["proposal_count"] == 2


def test_missing_caller_header(client):
    r = client.post("/api/phases/start-proposals-registration")

    assert r.status_code == 401


def test_unknown_phase_action(client):
    assert advance(client, "skip-to-the-end").status_code == 422


def test_non_admin_cannot_advance(client):
    r = advance(client, "start-proposals-registration", caller=MALLORY)

    assert r.status_code == 403
    assert r.json()["error"] == "UnauthorizedError"


def test_wrong_phase_reports_required_phase(client):
    r = advance(client, "start-voting-session")

    assert r.status_code == 409
    body = r.json()
    assert body["error"] == "InvalidPhaseTransitionError"
    assert body["required_phase"] == "proposals_registration_ended"
    assert body["actual_phase"] == "registering_voters"


def test_proposal_errors(client):
    client.post("/api/voters", json={"identity": BOB}, headers=as_caller(ADMIN))
    advance(client, "start-proposals-registration")

    r = client.post("/api/proposals", json={"description": ""}, headers=as_caller(BOB))
    assert r.status_code == 422
    assert r.json()["error"] == "EmptyProposalError"

    client.post("/api/proposals", json={"description": "Build a bridge"}, headers=as_caller(BOB))
    r = client.post(
        "/api/proposals", json={"description": "Build a bridge"}, headers=as_caller(BOB)
    )
    assert r.status_code == 409
    assert r.json()["error"] == "DuplicateProposalError"

    r = client.post("/api/proposals", json={"description": "Z"}, headers=as_caller(MALLORY))
    assert r.status_code == 403

    r = client.get("/api/proposals/0", headers=as_caller(BOB))
    assert r.json() == {"proposal_index": 0, "description": "Build a bridge"}
    r = client.get("/api/proposals/5", headers=as_caller(BOB))
    assert r.status_code == 404


def test_winner_before_tally(client):
    client.post("/api/voters", json={"identity": BOB}, headers=as_caller(ADMIN))
    advance(client, "start-proposals-registration")
    client.post("/api/proposals", json={"description": "X"}, headers=as_caller(BOB))

    r = client.get("/api/winner")

    assert r.status_code == 409
    assert r.json()["error"] == "TallyNotDoneError"


def test_reset_with_zero_proposals(client):
    client.post("/api/voters", json={"identity": BOB}, headers=as_caller(ADMIN))
    advance(client, "start-proposals-registration")
    advance(client, "stop-proposals-registration")

    r = client.post("/api/session/reset", headers=as_caller(ADMIN))

    assert r.status_code == 200
    assert r.json() == {
        "previous_phase": "proposals_registration_ended",
        "new_phase": "registering_voters",
    }
    r = client.get(f"/api/voters/{BOB}", headers=as_caller(BOB))
    assert r.status_code == 403


def test_reset_refused(client):
    r = client.post("/api/session/reset", headers=as_caller(ADMIN))

    assert r.status_code == 409
    assert r.json()["error"] == "SessionNotResettableError"


def test_get_vote_errors(client):
    client.post("/api/voters", json={"identity": BOB}, headers=as_caller(ADMIN))

    r = client.get(f"/api/voters/{MALLORY}/vote", headers=as_caller(BOB))
    assert r.status_code == 404
    assert r.json()["error"] == "NotAVoterError"

    r = client.get(f"/api/voters/{BOB}/vote", headers=as_caller(BOB))
    assert r.status_code == 409
    assert r.json()["error"] == "HasNotVotedError"


def test_transfer_ownership(client):
    r = client.post("/api/session/owner", json={"new_owner": BOB}, headers=as_caller(MALLORY))
    assert r.status_code == 403

    r = client.post("/api/session/owner", json={"new_owner": BOB}, headers=as_caller(ADMIN))
    assert r.json() == {"owner": BOB}
    assert advance(client, "start-proposals-registration", caller=BOB).status_code == 200


def test_event_history(client):
    client.post("/api/voters", json={"identity": BOB}, headers=as_caller(ADMIN))
    advance(client, "start-proposals-registration")

    events = client.get("/api/events/history").json()
    assert [e["event_type"] for e in events] == ["voter_registered", "workflow_status_change"]

    later = client.get("/api/events/history", params={"after": 0}).json()
    assert [e["sequence"] for e in later] == [1]


def test_state_written_after_mutation(client, tmp_path):
    client.post("/api/voters", json={"identity": BOB}, headers=as_caller(ADMIN))

    assert (tmp_path / "session.json").exists()


def sse_fields(body: str, name: str) -> list[str]:
    prefix = f"{name}:"
    return [line[len(prefix):].strip() for line in body.splitlines() if line.startswith(prefix)]


def test_event_stream_backlog(client):
    client.post("/api/voters", json={"identity": BOB}, headers=as_caller(ADMIN))
    advance(client, "start-proposals-registration")

    r = client.get("/api/events", params={"follow": "false"})

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/event-stream")
    assert sse_fields(r.text, "id") == ["0", "1"]
    assert sse_fields(r.text, "event") == ["voter_registered", "workflow_status_change"]
    assert persistence._default_store.workflow._listeners == []


def test_event_stream_resumes_after_last_event_id(client):
    client.post("/api/voters", json={"identity": BOB}, headers=as_caller(ADMIN))
    advance(client, "start-proposals-registration")

    r = client.get("/api/events", params={"follow": "false"}, headers={"Last-Event-ID": "0"})

    assert sse_fields(r.text, "id") == ["1"]
    assert sse_fields(r.text, "event") == ["workflow_status_change"]


class DisconnectingRequest:
    """Stands in for a client that leaves after a number of polls."""

    def __init__(self, polls: int, last_event_id: str | None = None):
        self.headers = {"Last-Event-ID": last_event_id} if last_event_id else {}
        self.polls = polls

    async def is_disconnected(self) -> bool:
        self.polls -= 1
        return self.polls < 0


def test_followed_stream_unsubscribes_when_client_leaves(tmp_path):
    settings = config.Settings(admin_identity=ADMIN, state_file=tmp_path / "session.json")
    store = SessionStore(settings)

    async def run():
        async with store.transaction() as workflow:
            workflow.register_voter(ADMIN, BOB)

        response = await stream_events(request=DisconnectingRequest(polls=1), store=store)
        subscribed = len(store.workflow._listeners)

        async with store.transaction() as workflow:
            workflow.register_voter(ADMIN, CAROL)

        messages = [message async for message in response.body_iterator]
        return subscribed, messages

    subscribed, messages = asyncio.run(run())

    assert subscribed == 1
    assert [m["id"] for m in messages] == ["0", "1"]
    assert [m["event"] for m in messages] == ["voter_registered", "voter_registered"]
    assert store.workflow._listeners == []
