"""Pytest configuration and fixtures."""

import os
from unittest.mock import MagicMock

import pytest

# Set test environment variables before importing app code
os.environ["LOG_LEVEL"] = "ERROR"  # Suppress logs during tests
os.environ.pop("GOOGLE_CLOUD_PROJECT", None)


@pytest.fixture
def fake_clients():
    """Service clients with every remote call mocked out."""
    from clients import ServiceClients

    return ServiceClients(
        spanner_admin=MagicMock(name="spanner_admin"),
        bigquery=MagicMock(name="bigquery"),
        translate_grpc=MagicMock(name="translate_grpc"),
        translate_rest=MagicMock(name="translate_rest"),
    )


@pytest.fixture
def app_client(fake_clients):
    """Flask test client wired to the fake service clients."""
    from main import app

    app.extensions["service_clients"] = fake_clients
    with app.test_client() as client:
        yield client
    app.extensions.pop("service_clients", None)
