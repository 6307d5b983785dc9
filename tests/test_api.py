"""
HTTP and WebSocket tests against the FastAPI app with an in-memory store
"""
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from crease.api import match as match_api
from crease.store import get_store
from main import app
from tests.factories import SQUAD_A, SQUAD_B


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client, username):
    response = client.post("/api/auth/login", json={"username": username})
    assert response.status_code == 200
    return {"X-Admin-Id": response.json()["adminId"]}


@pytest.fixture
def scorer(client):
    return login(client, "Scorer")


@pytest.fixture
def match_id(client, scorer):
    response = client.post("/api/matches", headers=scorer, json={
        "teamA": "India",
        "teamB": "Australia",
        "squadA": SQUAD_A,
        "squadB": SQUAD_B,
        "oversPerInnings": 2,
        "battingOrder": SQUAD_A,
    })
    assert response.status_code == 201
    return response.json()["matchId"]


def select(client, headers, match_id, role, name):
    return client.post(f"/api/matches/{match_id}/players", headers=headers, json={"role": role, "name": name})


@pytest.fixture
def live_match(client, scorer, match_id):
    select(client, scorer, match_id, "striker", "Rohit")
    select(client, scorer, match_id, "non_striker", "Gill")
    select(client, scorer, match_id, "bowler", "Starc")
    return match_id


class TestHealth:
    def test_root(self, client):
        response = client.get("/")
        assert response.json()["status"] == "running"

    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "healthy"}


class TestAuth:
    def test_login_is_idempotent(self, client):
        first = client.post("/api/auth/login", json={"username": "Scorer"}).json()
        second = client.post("/api/auth/login", json={"username": " scorer "}).json()

        assert first == second
        assert first["username"] == "scorer"

    def test_blank_username(self, client):
        response = client.post("/api/auth/login", json={"username": "   "})
        assert response.status_code == 400

    def test_me(self, client, scorer):
        response = client.get("/api/auth/me", headers=scorer)

        assert response.status_code == 200
        assert response.json()["username"] == "scorer"

    def test_unknown_admin(self, client):
        response = client.get("/api/auth/me", headers={"X-Admin-Id": "bm9ib2R5"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Unknown admin - log in first"

    def test_admin_routes_need_header(self, client):
        response = client.post("/api/matches", json={
            "teamA": "India", "teamB": "Australia", "squadA": SQUAD_A, "squadB": SQUAD_B,
        })
        assert response.status_code == 401


class TestMatches:
    def test_list_and_get(self, client, match_id):
        listing = client.get("/api/matches").json()

        assert [m["matchId"] for m in listing] == [match_id]
        assert listing[0]["summary"] == "India batting"
        assert listing[0]["lockHolder"] == "scorer"

        record = client.get(f"/api/matches/{match_id}").json()
        assert record["meta"]["battingTeam"] == "India"
        assert record["squads"]["teamA"] == SQUAD_A

    def test_unknown_match(self, client):
        assert client.get("/api/matches/match_missing").status_code == 404
        assert client.get("/api/matches/match_missing/live").status_code == 404

    def test_invalid_match(self, client, scorer):
        response = client.post("/api/matches", headers=scorer, json={
            "teamA": "India", "teamB": "India", "squadA": SQUAD_A, "squadB": SQUAD_B,
        })

        assert response.status_code == 400
        assert response.json()["detail"] == "Teams must be different"


class TestScoring:
    def test_delivery_before_selection(self, client, scorer, match_id):
        response = client.post(f"/api/matches/{match_id}/balls", headers=scorer, json={"runs": 1})

        assert response.status_code == 400
        assert response.json()["detail"] == "Please select a striker"

    def test_bad_selection(self, client, scorer, match_id):
        response = select(client, scorer, match_id, "bowler", "Bumrah")
        assert response.status_code == 400

    def test_delivery(self, client, scorer, live_match):
        response = client.post(f"/api/matches/{live_match}/balls", headers=scorer, json={"runs": 4})

        assert response.status_code == 200
        body = response.json()
        assert body["ball"]["runsScored"] == 4
        assert body["changes"]["strikeChanged"] is False
        assert body["live"]["runs"] == 4
        assert body["live"]["overs"] == "0.1"
        assert body["live"]["thisOver"] == ["4"]
        assert body["live"]["striker"]["runs"] == 4
        assert body["live"]["nextBatsman"] == "Kohli"

    def test_extras_notation(self, client, scorer, live_match):
        client.post(f"/api/matches/{live_match}/balls", headers=scorer, json={"runs": 0, "extrasType": "WD"})
        client.post(f"/api/matches/{live_match}/balls", headers=scorer, json={"runs": 1, "extrasType": "NB"})
        live = client.get(f"/api/matches/{live_match}/live").json()

        assert live["thisOver"] == ["1wd", "2nb"]
        assert live["isFreeHit"] is True
        assert live["runs"] == 3

    def test_runs_out_of_range(self, client, scorer, live_match):
        response = client.post(f"/api/matches/{live_match}/balls", headers=scorer, json={"runs": 8})
        assert response.status_code == 422

    def test_locked_by_other_admin(self, client, live_match):
        umpire = login(client, "Umpire")

        response = client.post(f"/api/matches/{live_match}/balls", headers=umpire, json={"runs": 1})
        assert response.status_code == 409

        response = client.post(f"/api/matches/{live_match}/lock", headers=umpire)
        assert response.status_code == 409

    def test_lock_handover(self, client, scorer, live_match):
        umpire = login(client, "Umpire")

        assert client.delete(f"/api/matches/{live_match}/lock", headers=scorer).status_code == 204
        response = client.post(f"/api/matches/{live_match}/lock", headers=umpire)

        assert response.status_code == 200
        assert response.json()["holderName"] == "umpire"

    def test_undo(self, client, scorer, live_match):
        client.post(f"/api/matches/{live_match}/balls", headers=scorer, json={"runs": 1})
        client.post(f"/api/matches/{live_match}/balls", headers=scorer, json={"runs": 6})

        response = client.delete(f"/api/matches/{live_match}/balls/last", headers=scorer)

        assert response.status_code == 200
        assert response.json()["runs"] == 1
        assert response.json()["overs"] == "0.1"

    def test_full_match(self, client, scorer, live_match):
        def ball(runs):
            response = client.post(f"/api/matches/{live_match}/balls", headers=scorer, json={"runs": runs})
            assert response.status_code == 200
            return response.json()

        for runs in (4, 0, 0, 0, 0, 0):
            ball(runs)
        select(client, scorer, live_match, "bowler", "Cummins")
        for runs in (0, 0, 0, 0, 0):
            ball(runs)
        last = ball(1)
        assert last["changes"]["inningsCompleted"] is True
        assert last["live"]["status"] == "INNINGS_BREAK"
        assert last["live"]["summary"] == "Innings break - India: 5/0"

        response = client.post(f"/api/matches/{live_match}/innings2", headers=scorer)
        assert response.status_code == 200
        assert response.json()["target"] == 6
        assert response.json()["battingTeam"] == "Australia"

        select(client, scorer, live_match, "striker", "Warner")
        select(client, scorer, live_match, "non_striker", "Head")
        select(client, scorer, live_match, "bowler", "Bumrah")
        live = ball(2)["live"]
        assert live["nextBatsman"] is None
        assert live["runsNeeded"] == 4
        assert live["ballsRemaining"] == 11
        assert live["requiredRate"] == pytest.approx(2.18)

        final = ball(4)["live"]
        assert final["status"] == "COMPLETED"
        assert final["matchResult"] == "Australia won by 10 wickets"
        assert final["winningTeam"] == "Australia"
        assert final["nextBatsman"] is None

        card = client.get(f"/api/matches/{live_match}/scorecard").json()
        assert [i["battingTeam"] for i in card["innings"]] == ["India", "Australia"]
        assert card["innings"][0]["totalRuns"] == 5
        assert card["innings"][1]["batsmanStats"]["Warner"]["runs"] == 6
        assert card["matchResult"] == "Australia won by 10 wickets"

    def test_scorecard_in_progress(self, client, scorer, live_match):
        client.post(f"/api/matches/{live_match}/balls", headers=scorer, json={"runs": 2})
        card = client.get(f"/api/matches/{live_match}/scorecard").json()

        assert len(card["innings"]) == 1
        assert card["innings"][0]["totalRuns"] == 2

    def test_abandon(self, client, scorer, live_match):
        response = client.post(f"/api/matches/{live_match}/abandon", headers=scorer)

        assert response.status_code == 200
        assert response.json()["matchResult"] == "No result"
        assert response.json()["matchResultType"] == "no_result"


class TestTournamentApi:
    def test_setup_start_and_standings(self, client, scorer):
        response = client.put("/api/tournaments/vcl", headers=scorer, json={
            "groupA": ["csk", "mi", "rcb"],
            "groupB": ["srh", "dc"],
        })
        assert response.status_code == 200
        assert len(response.json()["fixtures"]) == 4

        response = client.post("/api/tournaments/vcl/fixtures/fix_A_csk_mi/start", headers=scorer, json={
            "squadA": SQUAD_A, "squadB": SQUAD_B, "oversPerInnings": 1,
        })
        assert response.status_code == 201
        assert response.json()["fixtureId"] == "fix_A_csk_mi"

        fixture = client.get("/api/tournaments/vcl").json()["fixtures"]["fix_A_csk_mi"]
        assert fixture["status"] == "LIVE"

        table = client.get("/api/tournaments/vcl/standings/a").json()
        assert [row["position"] for row in table] == [1, 2, 3]
        assert all(row["points"] == 0 for row in table)

    def test_unknown_tournament(self, client):
        assert client.get("/api/tournaments/nope").status_code == 404
        assert client.get("/api/tournaments/nope/standings/A").status_code == 404

    def test_setup_needs_admin(self, client):
        response = client.put("/api/tournaments/vcl", json={"groupA": ["a", "b"], "groupB": ["c", "d"]})
        assert response.status_code == 401


class TestLiveFeed:
    def test_initial_view_then_updates(self, client, scorer, live_match):
        with client.websocket_connect(f"/api/matches/{live_match}/feed") as ws:
            first = ws.receive_json()
            assert first["matchId"] == live_match
            assert first["runs"] == 0

            client.post(f"/api/matches/{live_match}/balls", headers=scorer, json={"runs": 4})
            update = ws.receive_json()
            assert update["runs"] == 4
            assert update["thisOver"] == ["4"]

    def test_unknown_match_closes(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/api/matches/match_missing/feed") as ws:
                ws.receive_json()

        assert exc_info.value.code == 4404

    def test_blocking_work_runs_in_threadpool(self, client, scorer, live_match, monkeypatch):
        offloaded = []
        run_in_threadpool = match_api.run_in_threadpool

        async def recording(func, *args, **kwargs):
            offloaded.append(func.__name__)
            return await run_in_threadpool(func, *args, **kwargs)

        monkeypatch.setattr(match_api, "run_in_threadpool", recording)
        with client.websocket_connect(f"/api/matches/{live_match}/feed") as ws:
            ws.receive_json()
            client.post(f"/api/matches/{live_match}/balls", headers=scorer, json={"runs": 1})
            assert ws.receive_json()["runs"] == 1

        assert offloaded[:2] == ["get", "subscribe"]
        assert offloaded.count("_feed_message") == 2
