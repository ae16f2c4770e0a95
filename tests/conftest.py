import pytest

from rewardforge.testing import app_fixture


@pytest.fixture()
def app():
    return app_fixture()


@pytest.fixture()
def engine(app):
    return app.engine


@pytest.fixture()
def clock(app):
    return app.clock


@pytest.fixture()
def ledger(app):
    return app.ledger
