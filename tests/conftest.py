"""Test configuration and fixtures for gs1link."""

from tests.fixtures import *  # noqa: F401,F403
