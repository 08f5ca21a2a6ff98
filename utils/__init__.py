"""Shared helpers: response cache, rate limiting, timestamp parsing."""
