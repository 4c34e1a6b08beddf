"""Caches, per-user conversation state and persistent stores."""
