import pytest

from minivue import scheduler


@pytest.fixture(autouse=True)
def _reset_scheduler():
    """Each test starts with an empty queue and no flush hook."""
    scheduler.reset()
    yield
    scheduler.reset()
