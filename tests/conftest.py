import logging

import pytest

from pinball_rankings.core.logging import ROOT_LOGGER_NAME


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo setup_logging so caplog keeps seeing package records."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
