"""
API routes.

This module organizes routes into:
- cricket: scoring, scorecard and standings routes
"""
