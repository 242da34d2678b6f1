import pytest
from fastapi.testclient import TestClient

from storefront.main import create_app
from tests.helpers import backend_mode, make_settings


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def fallback_client(settings):
    app = create_app(settings, backend_mode=backend_mode(False))
    with TestClient(app) as client:
        yield client
