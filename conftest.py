"""Root-level conftest.py: make this checkout's ghflow package importable.

Running pytest from a fresh clone works without ``pip install -e .``; when an
editable install exists elsewhere, the local copy shadows it.
"""

import sys
from pathlib import Path

_root = str(Path(__file__).parent)
if _root not in sys.path:
    sys.path.insert(0, _root)
