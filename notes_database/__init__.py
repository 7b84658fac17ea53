"""Persistence layer for the notes API: engine/session helpers, models, schema setup."""
