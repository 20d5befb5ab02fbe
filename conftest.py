import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from library import builtin_scope  # noqa: E402
from runtime import Scope  # noqa: E402


@pytest.fixture()
def scope():
    """A fresh scope on top of the builtin one that tests may change."""
    return Scope([builtin_scope])
