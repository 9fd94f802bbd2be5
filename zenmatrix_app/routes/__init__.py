"""
Routes package for the ZenMatrix Task API.

This package contains route blueprints:
- views: plain-text banner at the site root
- accounts: registration and login
- api: task CRUD and health-check endpoints
"""
