"""
PodoCare data layer.

One asynchronous repository contract per clinic entity, backed by a local
key-value store, a REST API, or both (API first with local fallback).

Usage:
    from podocare.core.config import create_repository_config
    from podocare.repositories import create_repositories

    repos = create_repositories(create_repository_config("local"))
    page = await repos.patients.get_all({"page": 1, "search": "garcía"})
"""

__version__ = "0.1.0"
