import logging

import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_logging_config():
    """Undo configure_logging() so one test's handlers never leak into the next."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, logging.StreamHandler) and not type(handler).__module__.startswith("_pytest"):
            root.removeHandler(handler)
