"""
Dictionary views of scoring models for API responses.
"""
from typing import Dict, Optional, Any

from app.models import Ball, Inning, Match, MatchPlayerStats, PointsTableStanding, Team
from app.services.scoring.ledger import InningsSummary, overs_notation


def _player_ref(player_id: Optional[str], names: Dict[str, str]) -> Optional[Dict[str, Any]]:
    if not player_id:
        return None
    return {"id": player_id, "name": names.get(player_id)}


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def ball_to_dict(ball: Ball, names: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Convert a Ball to a dictionary."""
    names = names or {}
    return {
        "id": ball.id,
        "match_id": ball.match_id,
        "inning_id": ball.inning_id,
        "over": ball.over,
        "ball_in_over": ball.ball_in_over,
        "position": ball.position,
        "is_legal": ball.is_legal,
        "bowler": _player_ref(ball.bowler_id, names),
        "batsman": _player_ref(ball.batsman_id, names),
        "non_striker": _player_ref(ball.non_striker_id, names),
        "runs": {
            "batsman": ball.runs_batsman,
            "extras": ball.runs_extras,
            "total": ball.runs_total,
        },
        "extra_type": ball.extra_type,
        "wicket": {
            "is_wicket": ball.is_wicket,
            "type": ball.wicket_type,
            "player_out": _player_ref(ball.player_out_id, names),
            "fielder": _player_ref(ball.fielder_id, names),
        },
        "commentary": ball.commentary,
        "created_at": _iso(ball.created_at),
    }


def inning_to_dict(inning: Inning, summary: Optional[InningsSummary] = None) -> Dict[str, Any]:
    """Convert an Inning to a dictionary, with ledger totals when given."""
    data = {
        "id": inning.id,
        "match_id": inning.match_id,
        "inning_number": inning.inning_number,
        "batting_team_id": inning.batting_team_id,
        "bowling_team_id": inning.bowling_team_id,
        "target": inning.target,
        "is_completed": inning.is_completed,
        "completion_reason": inning.completion_reason,
    }
    if summary is not None:
        data["summary"] = summary.to_dict()
        if inning.target is not None and not inning.is_completed:
            data["runs_required"] = max(inning.target - summary.runs, 0)
    return data


def stats_to_dict(row: MatchPlayerStats, name: Optional[str] = None) -> Dict[str, Any]:
    """Convert a MatchPlayerStats row to a dictionary."""
    return {
        "player_id": row.player_id,
        "player_name": name,
        "team_id": row.team_id,
        "batting": {
            "runs": row.batting_runs,
            "balls": row.batting_balls,
            "fours": row.batting_fours,
            "sixes": row.batting_sixes,
            "out": row.batting_out,
        },
        "bowling": {
            "balls": row.bowling_balls,
            "overs": overs_notation(row.bowling_balls),
            "runs_conceded": row.bowling_runs_conceded,
            "wickets": row.bowling_wickets,
            "dot_balls": row.bowling_dot_balls,
            "maidens": round(row.bowling_maidens, 2),
        },
        "fielding": {
            "dismissals": row.fielding_dismissals,
        },
    }


def match_to_dict(match: Match) -> Dict[str, Any]:
    """Convert a Match to a dictionary."""
    return {
        "id": match.id,
        "tournament_id": match.tournament_id,
        "match_number": match.match_number,
        "team1_id": match.team1_id,
        "team2_id": match.team2_id,
        "venue": match.venue,
        "match_date": _iso(match.match_date),
        "match_type": match.match_type,
        "status": match.status,
        "toss": {
            "winner": match.toss_winner_id,
            "decision": match.toss_decision,
        } if match.toss_winner_id else None,
        "result": result_to_dict(match),
        "man_of_the_match": match.man_of_the_match_id,
    }


def result_to_dict(match: Match) -> Optional[Dict[str, Any]]:
    """The stored result of a match, or None when it has none."""
    if not match.has_result() and not match.result_summary:
        return None
    return {
        "winner": match.result_winner_id,
        "margin": match.result_margin,
        "summary": match.result_summary,
        "source": match.result_source,
    }


def team_to_dict(team: Team) -> Dict[str, Any]:
    """Convert a Team to a dictionary."""
    return {
        "id": team.id,
        "tournament_id": team.tournament_id,
        "name": team.name,
        "short_name": team.short_name,
        "city": team.city,
    }


def standing_to_dict(row: PointsTableStanding, team: Optional[Team] = None) -> Dict[str, Any]:
    """Convert a points table row to a dictionary."""
    return {
        "position": row.position,
        "team_id": row.team_id,
        "team_name": team.name if team else None,
        "team_short_name": team.short_name if team else None,
        "played": row.played,
        "won": row.won,
        "lost": row.lost,
        "no_result": row.no_result,
        "points": row.points,
        "net_run_rate": round(row.net_run_rate or 0.0, 3),
        "qualified": row.qualified,
    }
