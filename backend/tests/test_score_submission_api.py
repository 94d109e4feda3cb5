"""
End-to-end tests for score submission.

Covers:
- weekly results, standings and next-week placement from one submission
- idempotent resubmission
- invalid cards rejected with no writes
- destination week skipping an all-no-games week
- carry-forward, movement-week toggle, manual adjustments, weekly ranks
"""

import pytest
from fastapi.testclient import TestClient

# A-C, A-B, B-C: C beats A, A beats B, B and C split → order C, A, B
THREE_TEAM_CARD = [
    [[10, 21], [12, 21]],
    [[21, 10], [21, 12]],
    "21-15 15-21",
]

ELITE_A_WINS = [[[25, 20], [25, 20], [25, 20]]]
ELITE_B_WINS = [[[20, 25], [20, 25], [20, 25]]]


def _create_league(client: TestClient, name: str, teams) -> dict:
    response = client.post("/api/leagues", json={"name": name})
    assert response.status_code == 201
    league = response.json()
    for team in teams:
        r = client.post(f"/api/leagues/{league['id']}/teams", json={"name": team})
        assert r.status_code == 201
    return league


def _create_tier(client: TestClient, league_id: int, week: int, tier: int, fmt: str, names, **extra):
    body = {"tier_number": tier, "format": fmt, **extra}
    for label, name in zip("abcdef", names):
        body[f"team_{label}_name"] = name
    response = client.post(f"/api/leagues/{league_id}/weeks/{week}/tiers", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def _tiers(client: TestClient, league_id: int, week: int) -> dict:
    response = client.get(f"/api/leagues/{league_id}/weeks/{week}/tiers")
    assert response.status_code == 200
    return {t["tier_number"]: t for t in response.json()}


def _standings(client: TestClient, league_id: int) -> dict:
    response = client.get(f"/api/leagues/{league_id}/standings")
    assert response.status_code == 200
    return {s["team_name"]: s for s in response.json()}


@pytest.fixture
def three_team_league(client: TestClient):
    league = _create_league(
        client, "Tuesday Coed", ["Aces", "Blockers", "Cobras", "Diggers", "Eagles", "Flyers"]
    )
    _create_tier(client, league["id"], 1, 1, "3-teams-6-sets", ["Aces", "Blockers", "Cobras"], location="Gym 1")
    _create_tier(client, league["id"], 1, 2, "3-teams-6-sets", ["Diggers", "Eagles", "Flyers"])
    return league


class TestSubmission:
    def test_submit_scores_tier(self, client: TestClient, three_team_league):
        league_id = three_team_league["id"]
        response = client.post(
            f"/api/leagues/{league_id}/weeks/1/tiers/1/scores",
            json={"pairings": THREE_TEAM_CARD, "spares": {"Aces": "Sam"}},
        )
        assert response.status_code == 200, response.text
        data = response.json()

        assert data["order"] == ["C", "A", "B"]
        assert [(line["team_name"], line["league_points"]) for line in data["lines"]] == [
            ("Cobras", 7),
            ("Aces", 6),
            ("Blockers", 5),
        ]
        cobras = data["lines"][0]
        assert (cobras["wins"], cobras["losses"], cobras["points_for"] - cobras["points_against"]) == (3, 1, 20)

        # Top tier: the winner stays up, the loser drops to tier 2
        moves = {m["team_name"]: (m["target_week"], m["target_tier"], m["target_position"]) for m in data["movement"]}
        assert moves == {
            "Cobras": (2, 1, "A"),
            "Aces": (2, 1, "B"),
            "Blockers": (2, 2, "A"),
        }

    def test_results_and_next_week(self, client: TestClient, three_team_league):
        league_id = three_team_league["id"]
        client.post(f"/api/leagues/{league_id}/weeks/1/tiers/1/scores", json={"pairings": THREE_TEAM_CARD})

        results = client.get(f"/api/leagues/{league_id}/weeks/1/results").json()
        assert [(r["team_name"], r["tier_position"]) for r in results] == [
            ("Cobras", 1),
            ("Aces", 2),
            ("Blockers", 3),
        ]
        assert results[0]["match_details"]["format"] == "3-teams-6-sets"

        week1 = _tiers(client, league_id, 1)
        assert week1[1]["is_completed"] is True
        assert week1[2]["is_completed"] is False

        week2 = _tiers(client, league_id, 2)
        assert (week2[1]["team_a_name"], week2[1]["team_b_name"], week2[1]["team_c_name"]) == (
            "Cobras",
            "Aces",
            None,
        )
        assert week2[2]["team_a_name"] == "Blockers"
        # Created rows copy the template week
        assert week2[1]["location"] == "Gym 1"
        assert week2[2]["location"] == "TBD"
        assert week2[2]["format"] == "3-teams-6-sets"

    def test_standings_after_submission(self, client: TestClient, three_team_league):
        league_id = three_team_league["id"]
        client.post(f"/api/leagues/{league_id}/weeks/1/tiers/1/scores", json={"pairings": THREE_TEAM_CARD})

        standings = _standings(client, league_id)
        assert standings["Cobras"]["points"] == 7
        assert standings["Cobras"]["current_position"] == 1
        assert standings["Blockers"]["point_differential"] == -20
        assert standings["Blockers"]["current_position"] == 3

    def test_resubmission_is_idempotent(self, client: TestClient, three_team_league):
        league_id = three_team_league["id"]
        url = f"/api/leagues/{league_id}/weeks/1/tiers/1/scores"
        assert client.post(url, json={"pairings": THREE_TEAM_CARD}).status_code == 200
        first = _standings(client, league_id)
        assert client.post(url, json={"pairings": THREE_TEAM_CARD}).status_code == 200

        assert _standings(client, league_id) == first
        assert len(client.get(f"/api/leagues/{league_id}/weeks/1/results").json()) == 3
        week2 = _tiers(client, league_id, 2)
        assert (week2[1]["team_a_name"], week2[1]["team_b_name"], week2[2]["team_a_name"]) == (
            "Cobras",
            "Aces",
            "Blockers",
        )

    def test_corrected_card_replaces_previous_contribution(self, client: TestClient, three_team_league):
        league_id = three_team_league["id"]
        url = f"/api/leagues/{league_id}/weeks/1/tiers/1/scores"
        client.post(url, json={"pairings": THREE_TEAM_CARD})

        # A sweeps: order A, B, C
        corrected = [[[21, 10], [21, 10]], [[21, 10], [21, 10]], [[21, 10], [21, 10]]]
        response = client.post(url, json={"pairings": corrected})
        assert response.json()["order"] == ["A", "B", "C"]

        standings = _standings(client, league_id)
        assert standings["Aces"]["points"] == 7
        assert standings["Aces"]["wins"] == 4
        assert standings["Cobras"]["points"] == 5
        assert standings["Cobras"]["wins"] == 0

        week2 = _tiers(client, league_id, 2)
        assert week2[1]["team_a_name"] == "Aces"
        assert week2[1]["team_b_name"] == "Blockers"
        assert week2[2]["team_a_name"] == "Cobras"

    def test_bottom_tier_scores_no_bonus(self, client: TestClient, three_team_league):
        league_id = three_team_league["id"]
        response = client.post(
            f"/api/leagues/{league_id}/weeks/1/tiers/2/scores", json={"pairings": THREE_TEAM_CARD}
        )
        data = response.json()
        assert [line["league_points"] for line in data["lines"]] == [5, 4, 3]
        moves = {m["team_name"]: (m["target_tier"], m["target_position"]) for m in data["movement"]}
        assert moves == {"Flyers": (1, "C"), "Diggers": (2, "B"), "Eagles": (2, "C")}


class TestValidation:
    def test_tied_set_is_rejected_without_writes(self, client: TestClient, three_team_league):
        league_id = three_team_league["id"]
        card = [[[21, 21], [21, 10]], [[21, 10], [21, 10]], [[21, 10], [21, 10]]]
        response = client.post(f"/api/leagues/{league_id}/weeks/1/tiers/1/scores", json={"pairings": card})

        assert response.status_code == 422
        assert "tied" in response.json()["detail"]
        assert client.get(f"/api/leagues/{league_id}/weeks/1/results").json() == []
        assert client.get(f"/api/leagues/{league_id}/standings").json() == []
        assert _tiers(client, league_id, 2) == {}
        assert _tiers(client, league_id, 1)[1]["is_completed"] is False

    def test_wrong_pairing_count(self, client: TestClient, three_team_league):
        response = client.post(
            f"/api/leagues/{three_team_league['id']}/weeks/1/tiers/1/scores",
            json={"pairings": THREE_TEAM_CARD[:2]},
        )
        assert response.status_code == 422

    def test_unreadable_score_string(self, client: TestClient, three_team_league):
        card = THREE_TEAM_CARD[:2] + ["21 to 15"]
        response = client.post(
            f"/api/leagues/{three_team_league['id']}/weeks/1/tiers/1/scores", json={"pairings": card}
        )
        assert response.status_code == 422

    def test_missing_tier_is_404(self, client: TestClient, three_team_league):
        response = client.post(
            f"/api/leagues/{three_team_league['id']}/weeks/1/tiers/9/scores", json={"pairings": THREE_TEAM_CARD}
        )
        assert response.status_code == 404

    def test_missing_league_is_404(self, client: TestClient):
        response = client.post("/api/leagues/999/weeks/1/tiers/1/scores", json={"pairings": THREE_TEAM_CARD})
        assert response.status_code == 404

    def test_no_games_tier_cannot_be_scored(self, client: TestClient, three_team_league):
        league_id = three_team_league["id"]
        _create_tier(client, league_id, 1, 3, "3-teams-6-sets", ["X", "Y", "Z"], no_games=True)
        response = client.post(
            f"/api/leagues/{league_id}/weeks/1/tiers/3/scores", json={"pairings": THREE_TEAM_CARD}
        )
        assert response.status_code == 422


class TestSchedule:
    def test_unknown_format_rejected(self, client: TestClient, three_team_league):
        response = client.post(
            f"/api/leagues/{three_team_league['id']}/weeks/1/tiers",
            json={"tier_number": 3, "format": "5-teams"},
        )
        assert response.status_code == 422

    def test_position_outside_format_rejected(self, client: TestClient, three_team_league):
        response = client.post(
            f"/api/leagues/{three_team_league['id']}/weeks/1/tiers",
            json={"tier_number": 3, "format": "3-teams-6-sets", "team_d_name": "Extra"},
        )
        assert response.status_code == 422

    def test_seeded_rankings(self, client: TestClient, three_team_league):
        league_id = three_team_league["id"]
        created = _create_tier(
            client, league_id, 1, 3, "3-teams-6-sets", ["X", "Y", "Z"],
            no_games=True, team_a_ranking=7, team_b_ranking=8, team_c_ranking=9,
        )
        assert (created["team_a_ranking"], created["team_c_ranking"]) == (7, 9)

        carried = client.post(f"/api/leagues/{league_id}/weeks/1/tiers/3/carry-forward").json()
        assert (carried["team_a_ranking"], carried["team_b_ranking"], carried["team_c_ranking"]) == (7, 8, 9)

    @pytest.mark.parametrize(
        "body",
        [
            {"team_a_name": "X", "team_a_ranking": 0},
            {"team_d_ranking": 4},
        ],
    )
    def test_invalid_ranking_rejected(self, client: TestClient, three_team_league, body):
        response = client.post(
            f"/api/leagues/{three_team_league['id']}/weeks/1/tiers",
            json={"tier_number": 3, "format": "3-teams-6-sets", **body},
        )
        assert response.status_code == 422

    def test_duplicate_tier_rejected(self, client: TestClient, three_team_league):
        response = client.post(
            f"/api/leagues/{three_team_league['id']}/weeks/1/tiers",
            json={"tier_number": 1, "format": "3-teams-6-sets"},
        )
        assert response.status_code == 409

    def test_duplicate_team_rejected(self, client: TestClient, three_team_league):
        response = client.post(f"/api/leagues/{three_team_league['id']}/teams", json={"name": "Aces"})
        assert response.status_code == 409

    def test_no_games_week_is_skipped(self, client: TestClient, three_team_league):
        league_id = three_team_league["id"]
        _create_tier(client, league_id, 2, 1, "3-teams-6-sets", [], no_games=True)
        _create_tier(client, league_id, 2, 2, "3-teams-6-sets", [], no_games=True)

        data = client.post(
            f"/api/leagues/{league_id}/weeks/1/tiers/1/scores", json={"pairings": THREE_TEAM_CARD}
        ).json()

        assert {m["target_week"] for m in data["movement"]} == {3}
        assert _tiers(client, league_id, 3)[1]["team_a_name"] == "Cobras"
        assert _tiers(client, league_id, 2)[1]["team_a_name"] is None

    def test_no_games_neighbour_is_a_boundary(self, client: TestClient, three_team_league):
        league_id = three_team_league["id"]
        _create_tier(client, league_id, 1, 3, "3-teams-6-sets", ["X", "Y", "Z"], no_games=True)
        data = client.post(
            f"/api/leagues/{league_id}/weeks/1/tiers/2/scores", json={"pairings": THREE_TEAM_CARD}
        ).json()
        moves = {m["team_name"]: (m["target_tier"], m["target_position"]) for m in data["movement"]}
        assert moves["Eagles"] == (2, "C")

    def test_carry_forward(self, client: TestClient, three_team_league):
        league_id = three_team_league["id"]
        _create_tier(client, league_id, 1, 3, "3-teams-6-sets", ["X", "Y", "Z"], no_games=True)

        response = client.post(f"/api/leagues/{league_id}/weeks/1/tiers/3/carry-forward")
        assert response.status_code == 200
        carried = response.json()
        assert carried["week_number"] == 2
        assert (carried["team_a_name"], carried["team_b_name"], carried["team_c_name"]) == ("X", "Y", "Z")

        playable = client.post(f"/api/leagues/{league_id}/weeks/1/tiers/1/carry-forward")
        assert playable.status_code == 422

    def test_move_placements(self, client: TestClient, three_team_league):
        league_id = three_team_league["id"]
        response = client.post(f"/api/leagues/{league_id}/weeks/1/move-placements", json={"to_week": 4})
        assert response.json()["teams_moved"] == 6
        assert _tiers(client, league_id, 4)[2]["team_c_name"] == "Flyers"
        assert _tiers(client, league_id, 1)[1]["team_a_name"] is None

    def test_movement_week_toggle(self, client: TestClient, three_team_league):
        league_id = three_team_league["id"]
        response = client.patch(f"/api/leagues/{league_id}/weeks/1/movement-week", json={"movement_week": True})
        assert response.status_code == 200
        assert all(t["movement_week"] for t in response.json())

        missing = client.patch(f"/api/leagues/{league_id}/weeks/7/movement-week", json={"movement_week": True})
        assert missing.status_code == 404


class TestAdjustments:
    def test_manual_points_adjustment(self, client: TestClient, three_team_league):
        league_id = three_team_league["id"]
        client.post(f"/api/leagues/{league_id}/weeks/1/tiers/1/scores", json={"pairings": THREE_TEAM_CARD})
        blockers = _standings(client, league_id)["Blockers"]

        response = client.patch(
            f"/api/leagues/{league_id}/standings/{blockers['team_id']}/adjustments",
            json={"manual_points_adj": 10},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["total_points"] == 15
        assert data["points"] == 5
        assert data["current_position"] == 1

        # Resubmitting does not touch the adjustment
        client.post(f"/api/leagues/{league_id}/weeks/1/tiers/1/scores", json={"pairings": THREE_TEAM_CARD})
        assert _standings(client, league_id)["Blockers"]["manual_points_adj"] == 10

    def test_unknown_team_is_404(self, client: TestClient, three_team_league):
        response = client.patch(
            f"/api/leagues/{three_team_league['id']}/standings/999/adjustments", json={"manual_points_adj": 1}
        )
        assert response.status_code == 404


class TestEliteLeague:
    @pytest.fixture
    def elite_league(self, client: TestClient):
        league = _create_league(client, "Elite Thursday", ["P1", "P2", "P3", "P4"])
        _create_tier(client, league["id"], 1, 1, "2-teams-elite", ["P1", "P2"])
        _create_tier(client, league["id"], 1, 2, "2-teams-elite", ["P3", "P4"])
        return league

    def test_pair_reseeds_without_movement_week(self, client: TestClient, elite_league):
        league_id = elite_league["id"]
        top = client.post(f"/api/leagues/{league_id}/weeks/1/tiers/1/scores", json={"pairings": ELITE_A_WINS})
        bottom = client.post(f"/api/leagues/{league_id}/weeks/1/tiers/2/scores", json={"pairings": ELITE_B_WINS})
        assert top.status_code == 200 and bottom.status_code == 200
        assert bottom.json()["movement_week"] is False

        week2 = _tiers(client, league_id, 2)
        assert (week2[1]["team_a_name"], week2[1]["team_b_name"]) == ("P1", "P4")
        assert (week2[2]["team_a_name"], week2[2]["team_b_name"]) == ("P2", "P3")

        # Elite pairs report set wins and no league points
        lines = {line["team_name"]: line for line in top.json()["lines"]}
        assert (lines["P1"]["wins"], lines["P1"]["losses"], lines["P1"]["league_points"]) == (3, 0, 0)
        assert lines["P1"]["sets_won"] == 3

    def test_movement_week_request_override(self, client: TestClient, elite_league):
        league_id = elite_league["id"]
        response = client.post(
            f"/api/leagues/{league_id}/weeks/1/tiers/2/scores",
            json={"pairings": ELITE_B_WINS, "movement_week": True},
        )
        data = response.json()
        assert data["movement_week"] is True
        moves = {m["team_name"]: (m["target_tier"], m["target_position"]) for m in data["movement"]}
        # Bottom of the ladder: the loser cannot drop further
        assert moves == {"P4": (1, "B"), "P3": (2, "B")}

    def test_weekly_ranks(self, client: TestClient, elite_league):
        league_id = elite_league["id"]
        client.post(f"/api/leagues/{league_id}/weeks/1/tiers/1/scores", json={"pairings": ELITE_A_WINS})
        client.post(f"/api/leagues/{league_id}/weeks/1/tiers/2/scores", json={"pairings": ELITE_B_WINS})

        response = client.get(f"/api/leagues/{league_id}/weekly-ranks")
        assert response.status_code == 200
        data = response.json()
        assert data["is_elite"] is True
        assert data["max_week"] == 2

        teams = {t["team_name"]: t for t in data["teams"]}
        assert [t["team_name"] for t in data["teams"]] == ["P1", "P2", "P3", "P4"]
        assert {name: teams[name]["weekly_ranks"]["1"] for name in teams} == {
            "P1": 1,
            "P4": 2,
            "P2": 3,
            "P3": 4,
        }


class TestFormatsAndHealth:
    def test_list_formats(self, client: TestClient):
        response = client.get("/api/formats")
        assert response.status_code == 200
        assert len(response.json()) == 8

    def test_get_format(self, client: TestClient):
        data = client.get("/api/formats/6-teams-head-to-head").json()
        assert data["labels"] == ["A", "B", "C", "D", "E", "F"]
        assert data["base_points"] == [8, 7, 6, 5, 4, 3]
        assert data["movement"]["default"][0] == {
            "rank": 1,
            "tier_delta": -1,
            "label": "F",
            "saturated_label": "A",
        }

    def test_unknown_format_is_404(self, client: TestClient):
        assert client.get("/api/formats/9-teams").status_code == 404

    def test_health(self, client: TestClient):
        data = client.get("/api/health").json()
        assert data["status"] == "healthy"
        assert data["app_name"] == "Ladder League API"
