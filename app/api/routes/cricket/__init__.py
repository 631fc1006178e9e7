"""
Cricket scoring API routes.

This module contains all scoring endpoints:
- registry: tournaments, teams, players and fixtures
- matches: toss, playing XI, completion, result and scorecard
- innings: starting, closing and viewing innings
- balls: ball recording, undo and ball-level views
- points_table: tournament standings
"""
