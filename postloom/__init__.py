"""Postloom backend: OAuth 1.0a authorization and request signing."""
