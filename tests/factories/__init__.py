"""Test factories for repositories, stores and HTTP responses."""
