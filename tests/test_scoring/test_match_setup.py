"""Tests for the registry, toss and playing XI rules ahead of play."""
import pytest

from app.core.exceptions import ConflictError, NotFoundError, PreconditionError, ValidationError
from app.services.registry_service import RegistryService
from app.services.scoring import MatchSetupService, ScoringService, XIEntry


def _xi(player_ids, captain=1, keepers=(0,)):
    return [
        XIEntry(player=pid, is_captain=i == captain, is_wicket_keeper=i in keepers)
        for i, pid in enumerate(player_ids)
    ]


@pytest.fixture
def match_setup(db_session):
    return MatchSetupService(db_session)


@pytest.fixture
def fixture_match(db_session, tournament):
    """A scheduled match with no toss yet."""
    match = RegistryService(db_session).create_match(
        tournament.tournament_id, 99, tournament.team1_id, tournament.team2_id
    )
    return match["id"]


class TestRegistry:
    """Reference data checks."""

    def test_duplicate_tournament(self, db_session, tournament):
        with pytest.raises(ConflictError):
            RegistryService(db_session).create_tournament("Test Premier League", 2026)

    def test_duplicate_jersey(self, db_session, tournament):
        with pytest.raises(ConflictError):
            RegistryService(db_session).create_player(tournament.team1_id, "Another Player", 1)

    def test_invalid_role(self, db_session, tournament):
        with pytest.raises(ValidationError):
            RegistryService(db_session).create_player(tournament.team1_id, "Umpire", 50, role="umpire")

    def test_match_teams_must_differ(self, db_session, tournament):
        with pytest.raises(ValidationError):
            RegistryService(db_session).create_match(
                tournament.tournament_id, 1, tournament.team1_id, tournament.team1_id
            )

    def test_match_team_outside_tournament(self, db_session, tournament):
        with pytest.raises(NotFoundError):
            RegistryService(db_session).create_match(tournament.tournament_id, 1, tournament.team1_id, "other")

    def test_duplicate_match_number(self, db_session, tournament, fixture_match):
        with pytest.raises(ConflictError):
            RegistryService(db_session).create_match(
                tournament.tournament_id, 99, tournament.team1_id, tournament.team2_id
            )

    def test_tournament_lists_teams(self, db_session, tournament):
        data = RegistryService(db_session).get_tournament(tournament.tournament_id)

        assert data["overs_per_innings"] == 2
        assert {team["id"] for team in data["teams"]} == {tournament.team1_id, tournament.team2_id}


class TestToss:
    """Toss rules."""

    def test_bowl_first(self, match_setup, tournament, fixture_match):
        """Should make the opponent bat when the toss winner bowls."""
        response = match_setup.record_toss(fixture_match, tournament.team2_id, "bowl")

        assert response["match_status"] == "toss"
        assert response["batting_team_id"] == tournament.team1_id
        assert response["bowling_team_id"] == tournament.team2_id

    def test_invalid_decision(self, match_setup, tournament, fixture_match):
        with pytest.raises(ValidationError):
            match_setup.record_toss(fixture_match, tournament.team1_id, "field")

    def test_winner_outside_match(self, match_setup, fixture_match):
        with pytest.raises(ValidationError):
            match_setup.record_toss(fixture_match, "not-a-team", "bat")

    def test_toss_not_recorded(self, match_setup, fixture_match):
        with pytest.raises(NotFoundError):
            match_setup.get_toss(fixture_match)

    def test_toss_after_play_started(self, match_setup, live_match):
        with pytest.raises(PreconditionError):
            match_setup.record_toss(live_match.match_id, live_match.batting_first_id, "bat")


class TestPlayingXI:
    """Roster lock rules."""

    @pytest.fixture
    def tossed(self, match_setup, tournament, fixture_match):
        match_setup.record_toss(fixture_match, tournament.team1_id, "bat")
        return fixture_match

    def test_requires_toss(self, match_setup, tournament, fixture_match):
        with pytest.raises(PreconditionError):
            match_setup.set_playing_xi(fixture_match, tournament.team1_id, _xi(tournament.team1_players))

    def test_exactly_eleven(self, match_setup, tournament, tossed):
        with pytest.raises(ValidationError):
            match_setup.set_playing_xi(tossed, tournament.team1_id, _xi(tournament.team1_players[:10]))

    def test_one_captain(self, match_setup, tournament, tossed):
        entries = _xi(tournament.team1_players)
        entries[5].is_captain = True

        with pytest.raises(ValidationError) as exc:
            match_setup.set_playing_xi(tossed, tournament.team1_id, entries)

        assert exc.value.message == "Playing XI must have exactly one captain"

    def test_needs_wicket_keeper(self, match_setup, tournament, tossed):
        with pytest.raises(ValidationError):
            match_setup.set_playing_xi(tossed, tournament.team1_id, _xi(tournament.team1_players, keepers=()))

    def test_players_from_other_squad(self, match_setup, tournament, tossed):
        players = tournament.team1_players[:10] + [tournament.team2_players[0]]

        with pytest.raises(ValidationError) as exc:
            match_setup.set_playing_xi(tossed, tournament.team1_id, _xi(players))

        assert exc.value.message == "Some players do not belong to this team"

    def test_sorted_by_batting_order(self, match_setup, tournament, tossed):
        """Should default missing batting order to list position and store the XI sorted."""
        entries = _xi(tournament.team1_players)
        entries[10].batting_order = 1
        entries[0].batting_order = 11

        response = match_setup.set_playing_xi(tossed, tournament.team1_id, entries)

        assert response["playing_xi"][0]["player"] == tournament.team1_players[10]
        assert response["playing_xi"][-1]["player"] == tournament.team1_players[0]
        assert response["captain"] == tournament.team1_players[1]

    def test_inning_needs_both_xis(self, db_session, match_setup, tournament, tossed):
        match_setup.set_playing_xi(tossed, tournament.team1_id, _xi(tournament.team1_players))

        with pytest.raises(PreconditionError):
            ScoringService(db_session).start_inning(tossed, 1)

    def test_update_batting_order(self, match_setup, live_match):
        """Should renumber the XI in the given order."""
        order = list(reversed(live_match.batters_first))

        response = match_setup.update_batting_order(live_match.match_id, live_match.batting_first_id, order)

        assert [entry["player"] for entry in response["playing_xi"]] == order
        assert response["playing_xi"][0]["batting_order"] == 1

    def test_get_playing_xi_names_players(self, match_setup, live_match):
        data = match_setup.get_playing_xi(live_match.match_id)

        assert data["playing_xi"]["team1"]["is_set"] is True
        assert data["playing_xi"]["team1"]["players"][0]["name"] == "CHS Player 1"
