"""Shared pytest configuration."""

pytest_plugins = ["npmtraffic.testing.conftest"]
