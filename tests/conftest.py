import pytest

from followup_rules.catalog import CatalogStore


@pytest.fixture(scope="session")
def store():
    """Load every shipped catalog once for the entire test session."""
    s = CatalogStore()
    s.load()
    return s


@pytest.fixture(scope="session")
def treatment(store):
    return store.get("treatment_followup")


@pytest.fixture(scope="session")
def adverse(store):
    return store.get("adverse_event")
