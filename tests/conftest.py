from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.decl_builder import HeaderWriter


@pytest.fixture
def headers(tmp_path: Path) -> HeaderWriter:
    """Provide a writer for C sources rooted at the pytest tmp_path."""
    return HeaderWriter(tmp_path)
