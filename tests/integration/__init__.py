"""
Integration tests for the load test.

Tests here wire several modules together without touching the network:
- Full iterations through a fake Locust HTTP client
- Threshold gating of finished runs from CSV output
"""
