"""PaperVault - PDF paper catalog with validated ingestion and paginated search.

Stores each paper's PDF in an object store, keeps its metadata in a
SQLite repository and serves filtered, sorted, paginated queries over it.
"""

__version__ = "1.0.0"

from papervault.config import Settings
from papervault.models.paper import PaperRecord

__all__ = ["PaperRecord", "Settings", "__version__"]
