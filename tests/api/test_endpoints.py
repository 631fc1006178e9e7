"""
HTTP endpoint integration tests for cricket-scoring-api.

These tests verify that FastAPI endpoints:
- Return correct HTTP status codes
- Accept the camelCase request payloads
- Render domain errors with the error envelope
- Gate writes by role

Uses httpx AsyncClient over the ASGI app with the test database session.
"""
import pytest

from app.core.config import settings


def _ball_payload(match, over=1, ball_in_over=1, runs=0, **extra):
    payload = {
        "over": over,
        "ballInOver": ball_in_over,
        "bowler": match.bowlers_first[-1],
        "batsman": match.batters_first[0],
        "nonStriker": match.batters_first[1],
        "runs": {"batsman": runs, "extras": 0},
    }
    payload.update(extra)
    return payload


# =============================================================================
# ROOT & HEALTH
# =============================================================================

class TestServiceEndpoints:

    @pytest.mark.asyncio
    async def test_health(self, async_client):
        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_root_lists_endpoints(self, async_client):
        response = await async_client.get("/")

        assert response.status_code == 200
        assert response.json()["endpoints"]["api_version"] == "v1"

    @pytest.mark.asyncio
    async def test_correlation_id_echoed(self, async_client):
        response = await async_client.get("/health", headers={"X-Correlation-ID": "test-correlation-1"})

        assert response.headers["X-Correlation-ID"] == "test-correlation-1"


# =============================================================================
# REGISTRY
# =============================================================================

class TestRegistryEndpoints:

    @pytest.mark.asyncio
    async def test_create_and_fetch_tournament(self, async_client):
        response = await async_client.post(
            "/api/v1/tournaments", json={"name": "City League", "season": 2026, "oversPerInnings": 10}
        )
        assert response.status_code == 201
        tournament_id = response.json()["data"]["id"]

        response = await async_client.post(
            f"/api/v1/tournaments/{tournament_id}/teams", json={"name": "Harbour XI", "shortName": "HBR"}
        )
        assert response.status_code == 201

        response = await async_client.get(f"/api/v1/tournaments/{tournament_id}")
        data = response.json()["data"]
        assert data["overs_per_innings"] == 10
        assert [team["short_name"] for team in data["teams"]] == ["HBR"]

    @pytest.mark.asyncio
    async def test_not_found_envelope(self, async_client):
        response = await async_client.get("/api/v1/matches/does-not-exist")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "not_found"
        assert body["message"] == "Match not found"


# =============================================================================
# BALLS
# =============================================================================

class TestBallEndpoints:

    @pytest.mark.asyncio
    async def test_record_ball(self, async_client, live_match):
        response = await async_client.post(
            f"/api/v1/innings/{live_match.inning1_id}/balls", json=_ball_payload(live_match, runs=4)
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["ball"]["position"] == "1.1"
        assert data["ball"]["runs"] == {"batsman": 4, "extras": 0, "total": 4}
        assert data["inning"]["summary"]["total_runs"] == 4
        assert data["inning"]["summary"]["overs"] == "0.1"
        assert data["match_status"] == "inning1"

    @pytest.mark.asyncio
    async def test_sequencing_error(self, async_client, live_match):
        response = await async_client.post(
            f"/api/v1/innings/{live_match.inning1_id}/balls", json=_ball_payload(live_match, ball_in_over=2)
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert response.json()["message"] == "Previous ball 1.1 must be recorded first"

    @pytest.mark.asyncio
    async def test_duplicate_ball(self, async_client, live_match):
        url = f"/api/v1/innings/{live_match.inning1_id}/balls"
        await async_client.post(url, json=_ball_payload(live_match))

        response = await async_client.post(url, json=_ball_payload(live_match))

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_malformed_payload(self, async_client, live_match):
        response = await async_client.post(
            f"/api/v1/innings/{live_match.inning1_id}/balls", json=_ball_payload(live_match, ball_in_over=7)
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_wicket_payload(self, async_client, live_match):
        payload = _ball_payload(
            live_match,
            wicket={
                "isWicket": True,
                "type": "caught",
                "playerOut": live_match.batters_first[0],
                "fielder": live_match.bowlers_first[0],
            },
        )

        response = await async_client.post(f"/api/v1/innings/{live_match.inning1_id}/balls", json=payload)

        assert response.status_code == 201
        wicket = response.json()["data"]["ball"]["wicket"]
        assert wicket["is_wicket"] is True
        assert wicket["fielder"]["name"] == "MUM Player 1"

    @pytest.mark.asyncio
    async def test_undo(self, async_client, live_match):
        url = f"/api/v1/innings/{live_match.inning1_id}/balls"
        await async_client.post(url, json=_ball_payload(live_match, runs=2))

        response = await async_client.delete(f"{url}/last")
        assert response.status_code == 200
        assert response.json()["data"]["removed_ball"]["position"] == "1.1"
        assert response.json()["data"]["inning"]["summary"]["total_runs"] == 0

        response = await async_client.delete(f"{url}/last")
        assert response.status_code == 412
        assert response.json()["error"] == "precondition_failed"

    @pytest.mark.asyncio
    async def test_ball_views(self, async_client, live_match):
        url = f"/api/v1/innings/{live_match.inning1_id}/balls"
        for ball_in_over, runs in [(1, 1), (2, 0), (3, 6)]:
            await async_client.post(url, json=_ball_payload(live_match, ball_in_over=ball_in_over, runs=runs))

        response = await async_client.get(url, params={"page": 1, "limit": 2})
        body = response.json()
        assert response.status_code == 200
        assert len(body["data"]["balls"]) == 2
        assert list(body["data"]["grouped_by_over"]) == ["1"]
        assert body["data"]["statistics"]["total_runs"] == 7
        assert body["pagination"] == {
            "current_page": 1,
            "total_pages": 2,
            "total_balls": 3,
            "has_next_page": True,
            "has_prev_page": False,
        }

        response = await async_client.get(url, params={"sortOrder": "desc"})
        assert response.json()["data"]["balls"][0]["position"] == "1.3"

        current = (await async_client.get(f"/api/v1/innings/{live_match.inning1_id}/current-over")).json()["data"]
        assert current["current_over"] == 1
        assert current["current_ball"] == 3
        assert current["summary"] == {"runs": 7, "wickets": 0, "extras": 0}

        partners = (await async_client.get(f"/api/v1/innings/{live_match.inning1_id}/batting-partners")).json()["data"]
        assert partners["striker"]["id"] == live_match.batters_first[0]
        assert partners["partnership"] == {"runs": 7, "balls": 3, "current_run_rate": 14.0}

        commentary = (await async_client.get(f"/api/v1/innings/{live_match.inning1_id}/commentary")).json()["data"]
        assert [line["text"] for line in commentary] == ["1 run.", "Dot ball.", "Six! Massive hit."]


# =============================================================================
# INNINGS & MATCHES
# =============================================================================

class TestMatchEndpoints:

    @pytest.mark.asyncio
    async def test_start_and_view_innings(self, async_client, make_match):
        match = make_match(start=False)

        response = await async_client.post(f"/api/v1/matches/{match.match_id}/innings", json={"inningNumber": 1})
        assert response.status_code == 201
        inning_id = response.json()["data"]["id"]
        assert response.json()["data"]["batting_team_id"] == match.batting_first_id

        response = await async_client.post(f"/api/v1/matches/{match.match_id}/innings", json={"inningNumber": 1})
        assert response.status_code == 409

        current = (await async_client.get(f"/api/v1/matches/{match.match_id}/innings/current")).json()["data"]
        assert current["id"] == inning_id

        details = await async_client.get(f"/api/v1/innings/{inning_id}", params={"withBalls": "true"})
        assert details.json()["data"]["balls"] == []

    @pytest.mark.asyncio
    async def test_no_current_inning(self, async_client, make_match):
        match = make_match(start=False)

        response = await async_client.get(f"/api/v1/matches/{match.match_id}/innings/current")

        assert response.status_code == 404
        assert response.json()["message"] == "No active inning found"

    @pytest.mark.asyncio
    async def test_toss_and_playing_xi_views(self, async_client, live_match):
        toss = (await async_client.get(f"/api/v1/matches/{live_match.match_id}/toss")).json()["data"]
        assert toss["toss"]["decision"] == "bat"

        xi = (await async_client.get(f"/api/v1/matches/{live_match.match_id}/playing-xi")).json()["data"]
        assert len(xi["playing_xi"]["team1"]["players"]) == 11

    @pytest.mark.asyncio
    async def test_complete_with_override_and_correct(self, async_client, live_match):
        response = await async_client.post(
            f"/api/v1/matches/{live_match.match_id}/complete",
            json={"winner": live_match.batting_first_id, "margin": "12 runs",
                  "manOfTheMatch": live_match.batters_first[0]},
        )
        assert response.status_code == 200
        assert response.json()["data"]["result"]["summary"] == "Chennai Strikers won by 12 runs"

        response = await async_client.put(
            f"/api/v1/matches/{live_match.match_id}/result", json={"winner": live_match.bowling_first_id}
        )
        assert response.status_code == 200

        result = (await async_client.get(f"/api/v1/matches/{live_match.match_id}/result")).json()["data"]
        assert result["status"] == "completed"
        assert result["result"]["winner"] == live_match.bowling_first_id
        assert result["man_of_the_match"]["name"] == "CHS Player 1"

        table_url = f"/api/v1/tournaments/{live_match.tournament.tournament_id}/points-table"
        standings = (await async_client.get(table_url)).json()["data"]["standings"]
        assert standings[0]["team_id"] == live_match.bowling_first_id
        assert standings[0]["points"] == 2

        rebuilt = await async_client.post(f"{table_url}/rebuild")
        assert rebuilt.status_code == 200
        assert rebuilt.json()["data"]["standings"] == standings

    @pytest.mark.asyncio
    async def test_complete_without_innings(self, async_client, live_match):
        response = await async_client.post(f"/api/v1/matches/{live_match.match_id}/complete", json={})

        assert response.status_code == 412

    @pytest.mark.asyncio
    async def test_abandon(self, async_client, live_match):
        response = await async_client.post(f"/api/v1/matches/{live_match.match_id}/abandon", json={"reason": "Rain"})

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "abandoned"
        assert response.json()["data"]["result"]["summary"] == "Rain"

        response = await async_client.post(f"/api/v1/matches/{live_match.match_id}/abandon")
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_scorecard_and_stats_rebuild(self, async_client, live_match):
        url = f"/api/v1/innings/{live_match.inning1_id}/balls"
        await async_client.post(url, json=_ball_payload(live_match, runs=4))
        await async_client.post(url, json=_ball_payload(live_match, ball_in_over=2, runs=1))

        scorecard = (await async_client.get(f"/api/v1/matches/{live_match.match_id}/scorecard")).json()["data"]
        batting_side = scorecard["players"][live_match.batting_first_id]
        striker = next(p for p in batting_side if p["player_id"] == live_match.batters_first[0])
        assert striker["batting"]["runs"] == 5
        assert striker["batting"]["fours"] == 1
        assert scorecard["innings"][0]["summary"]["total_runs"] == 5

        response = await async_client.post(f"/api/v1/matches/{live_match.match_id}/stats/rebuild")
        assert response.status_code == 200
        rebuilt = {row["player_id"]: row for row in response.json()["data"]["stats"]}
        assert rebuilt[live_match.batters_first[0]]["batting"] == striker["batting"]


# =============================================================================
# AUTHORIZATION
# =============================================================================

class TestRoleGating:

    @pytest.fixture
    def role_keys(self, monkeypatch):
        monkeypatch.setattr(settings, "SCORER_API_KEY", "scorer-key")
        monkeypatch.setattr(settings, "ADMIN_API_KEY", "admin-key")

    @pytest.mark.asyncio
    async def test_missing_key(self, async_client, live_match, role_keys):
        response = await async_client.post(
            f"/api/v1/innings/{live_match.inning1_id}/balls", json=_ball_payload(live_match)
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_key(self, async_client, live_match, role_keys):
        response = await async_client.post(
            f"/api/v1/innings/{live_match.inning1_id}/balls",
            json=_ball_payload(live_match),
            headers={"X-API-Key": "guess"},
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_scorer_records_but_cannot_correct(self, async_client, live_match, role_keys):
        scorer = {"X-API-Key": "scorer-key"}
        response = await async_client.post(
            f"/api/v1/innings/{live_match.inning1_id}/balls", json=_ball_payload(live_match), headers=scorer
        )
        assert response.status_code == 201

        response = await async_client.post(
            f"/api/v1/tournaments/{live_match.tournament.tournament_id}/points-table/rebuild", headers=scorer
        )
        assert response.status_code == 403

        response = await async_client.post(
            f"/api/v1/tournaments/{live_match.tournament.tournament_id}/points-table/rebuild",
            headers={"X-API-Key": "admin-key"},
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_reads_are_open(self, async_client, live_match, role_keys):
        response = await async_client.get(f"/api/v1/matches/{live_match.match_id}/scorecard")

        assert response.status_code == 200
