from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.schema_builder import SchemaBuilder


@pytest.fixture
def schema_builder(tmp_path: Path) -> SchemaBuilder:
    """Provide a reusable schema builder rooted at the pytest tmp_path."""
    return SchemaBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_typegen_logging() -> Iterator[None]:
    """Drop handlers installed by configure_logging so tests stay isolated."""
    yield
    logger = logging.getLogger("typegen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
