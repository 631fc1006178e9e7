"""
Services module for scoring business logic.

This module organizes services into:
- registry_service: Tournaments, teams, players and match fixtures
- scoring: Ball ledger, innings/match state machine, stats and standings
"""
