"""Strava Routes - log in with Strava and map your activities."""

__version__ = "0.1.0"
