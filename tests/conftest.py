"""
Pytest configuration for DOCX Converter
"""

import logging
import sys
from pathlib import Path

import pytest

from .helpers import make_docx, paragraph


@pytest.fixture(autouse=True)
def configure_logging():
    """Configure logging for tests to avoid file handler issues."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(name)s - %(levelname)s - %(message)s"))
    root_logger.addHandler(console_handler)
    root_logger.setLevel(logging.WARNING)

    yield

    root_logger.handlers.clear()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    import tempfile

    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def build_docx():
    """Factory building in-memory ``.docx`` packages (see :func:`tests.helpers.make_docx`)."""
    return make_docx


@pytest.fixture
def simple_docx():
    """Package with one plain paragraph."""
    return make_docx(paragraph("Test paragraph"))


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    logging.raiseExceptions = False
