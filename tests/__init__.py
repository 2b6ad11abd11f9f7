"""
Test suite for the History Quiz API load test.

This package contains:
- unit/: validator, predicates, scenario parsing, metrics, config, hooks
- integration/: full iterations driven through a fake HTTP client, and
  the offline threshold checker run against CSV files
"""
