"""Pytest configuration and shared fixtures."""
import pytest

from api import create_app

ALICE = {"username": "alice1", "password": "secret12", "email": "a@x.com"}


def pytest_configure(config):
    config.addinivalue_line("markers", "auth: authentication-related tests")
    config.addinivalue_line("markers", "db: tests that touch the database")


@pytest.fixture
def app(tmp_path):
    """App on the testing config with its own SQLite file and upload folder."""
    app = create_app(
        "testing",
        overrides={
            "DATABASE_URL": f"sqlite:///{tmp_path / 'test.db'}",
            "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        },
    )
    yield app
    app.extensions["storage"].drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage(app):
    return app.extensions["storage"]


@pytest.fixture
def service(app):
    return app.extensions["auth_service"]


@pytest.fixture
def issuer(app):
    return app.extensions["token_issuer"]


@pytest.fixture
def registered_user(service):
    """alice1 / secret12, created directly through the service."""
    return service.register(dict(ALICE))


@pytest.fixture
def tokens(service, registered_user):
    return service.login(ALICE["username"], ALICE["password"])


@pytest.fixture
def auth_headers(tokens):
    return {"Authorization": f"Bearer {tokens['accessToken']}"}
