"""
Test suite for the ZenMatrix task API.

This package contains:
- unit/: Token, query-builder, model, auth decorator and CLI tests
- integration/: HTTP tests through the Flask test client
- security/: Adversarial input, mass-assignment and error-disclosure tests
"""
