import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Selects the configuration environment before any domain module is imported.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/adapters/" in test_path:
            item.add_marker(pytest.mark.adapters)


@pytest.fixture(autouse=True)
def reset_collaborators():
    """Put every swappable collaborator back to its default after each test."""
    yield

    from orders.catalog import reset_catalog
    from orders.config import reset_config
    from orders.identity import reset_token_verifier
    from orders.stores import reset_store_directory

    reset_catalog()
    reset_store_directory()
    reset_token_verifier()
    reset_config()
