import pytest


@pytest.fixture(autouse=True)
def mock_providers():
    """Every test talks to the in-process payment, insurance and minting providers."""
    from infrastructure.container import container

    container.configure_for_testing()
    yield container
    container.reset()
