from pathlib import Path

import pytest

from ..helpers import ARBITRARY_OID, create_file
from . import CONTENT


@pytest.fixture
def staged_file(tmp_path: Path) -> Path:
    """An object file waiting to be uploaded."""
    return create_file(tmp_path / "staged", ARBITRARY_OID, CONTENT)
