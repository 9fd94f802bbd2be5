"""Security tests for the ZenMatrix HTTP API."""
