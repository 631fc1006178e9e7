"""
Generated commentary lines for balls recorded without scorer text.
"""
from typing import Dict, Optional

from app.models import Ball

WICKET_LINES = {
    "bowled": "Clean bowled! {out} is out.",
    "caught": "Caught! {out} is caught by {fielder}.",
    "lbw": "LBW! {out} is out leg before wicket.",
    "run-out": "Run out! {out} is run out.",
    "stumped": "Stumped! {out} is stumped.",
    "hit-wicket": "Hit wicket! {out} is out.",
}


def generate_commentary(ball: Ball, names: Dict[str, str]) -> str:
    """
    Describe a ball in one line.

    Args:
        ball: The delivery
        names: Player id -> name for the players involved
    """
    if ball.is_wicket:
        out = names.get(ball.player_out_id, "Batsman")
        fielder = names.get(ball.fielder_id, "the fielder")
        template = WICKET_LINES.get(ball.wicket_type, "{out} is out.")
        return template.format(out=out, fielder=fielder)

    if ball.runs_total == 0:
        return "Dot ball."
    if ball.runs_batsman == 4:
        return "Four runs! Excellent shot."
    if ball.runs_batsman == 6:
        return "Six! Massive hit."
    if ball.extra_type == "wide":
        return "Wide ball."
    if ball.extra_type == "no-ball":
        return "No ball. Free hit coming up."

    runs = ball.runs_total
    return f"{runs} run." if runs == 1 else f"{runs} runs."


def commentary_text(ball: Ball, names: Dict[str, str]) -> Optional[str]:
    """Stored scorer commentary, falling back to a generated line."""
    return ball.commentary or generate_commentary(ball, names)
