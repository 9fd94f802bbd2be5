"""
Integration tests for the ZenMatrix HTTP API.

Tests use the Flask test client against a real SQLite database and cover:
- Registration and login
- Task CRUD and partial updates
- Listing filters, sorting and pagination
- Ownership scoping and the administrator bypass
- Payload validation
"""
