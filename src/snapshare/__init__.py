"""SnapShare package root.

The public API surface is the ``SnapShare`` facade plus the schema types in
``snapshare.schemas``. Runtime components live in ``snapshare.runtime`` and are
constructed by the facade.
"""

__version__ = "0.1.0"

from snapshare.app import SnapShare  # noqa: F401
from snapshare.schemas import *  # noqa: F401,F403
from snapshare.schemas import __all__ as SCHEMA_EXPORTS

__all__ = ["__version__", "SnapShare"] + SCHEMA_EXPORTS
