"""
Load and save tile catalog files.

A catalog is stored either as plain JSON (.json) or as a .tr ZIP archive
holding a catalog.json entry.
"""

import json
import logging
import zipfile
from pathlib import Path
from typing import Union

from .errors import UnknownTileType
from .tile import TileCatalog

logger = logging.getLogger(__name__)

CATALOG_ENTRY = 'catalog.json'


class CatalogLoader:
    """Loader for tile catalog files."""

    @staticmethod
    def load(filepath: Union[str, Path]) -> TileCatalog:
        """
        Load a catalog file and return a TileCatalog.

        Args:
            filepath: Path to a .json or .tr file

        Returns:
            TileCatalog with all tile types loaded

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format is invalid
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        if zipfile.is_zipfile(path):
            with zipfile.ZipFile(path, 'r') as zf:
                try:
                    raw = zf.read(CATALOG_ENTRY).decode('utf-8')
                except KeyError:
                    raise ValueError(f"Invalid catalog archive: missing {CATALOG_ENTRY}")
        else:
            raw = path.read_text(encoding='utf-8')

        catalog = CatalogLoader.from_json(raw)
        logger.info("Loaded %d tile types from %s", len(catalog), path)
        return catalog

    @staticmethod
    def from_json(raw: str) -> TileCatalog:
        """Parse catalog JSON text."""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid catalog JSON: {e}")

        if not isinstance(data, dict):
            raise ValueError("Invalid catalog JSON: top level must be an object")

        try:
            return TileCatalog.from_dict(data)
        except UnknownTileType:
            raise
        except KeyError as e:
            raise ValueError(f"Invalid catalog JSON: tile entry missing {e}")
        except TypeError as e:
            raise ValueError(f"Invalid catalog JSON: {e}")

    @staticmethod
    def save(catalog: TileCatalog, filepath: Union[str, Path]) -> Path:
        """
        Save a catalog. A .tr suffix writes a ZIP archive, anything else plain JSON.

        Returns:
            Path that was written
        """
        path = Path(filepath)
        text = json.dumps(catalog.to_dict(), indent=2)

        if path.suffix == '.tr':
            with zipfile.ZipFile(path, 'w', zipfile.ZIP_DEFLATED) as zf:
                zf.writestr(CATALOG_ENTRY, text)
        else:
            path.write_text(text, encoding='utf-8')

        logger.info("Saved %d tile types to %s", len(catalog), path)
        return path
