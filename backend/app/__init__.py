"""
Opportunity Aggregator Backend Package

This package contains the service that ingests external job and
opportunity listings into the platform, including:

- aggregator_service.py: one aggregation cycle over all sources
- scheduler.py: periodic and on-demand cycle execution
- source_fetchers/: feed and JSON API fetchers
- main.py: FastAPI application with operator endpoints
"""

__version__ = "1.0.0"
