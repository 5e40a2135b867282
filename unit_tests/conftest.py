import pytest


@pytest.fixture
def sleeps():
    """Records requested sleeps instead of sleeping."""
    return []


@pytest.fixture
def no_sleep(sleeps):
    return sleeps.append
