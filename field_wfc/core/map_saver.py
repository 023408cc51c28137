"""
Save and load .tm (Tile Map) files.
"""

import json
import logging
import zipfile
from pathlib import Path
from typing import Union

from .catalog_loader import CATALOG_ENTRY, CatalogLoader
from .errors import UnknownTileType
from .grid import FieldGrid

logger = logging.getLogger(__name__)

MAP_ENTRY = 'map.json'


class MapSaver:
    """Save and load .tm tile map files."""

    @staticmethod
    def save(filepath: Union[str, Path], grid: FieldGrid):
        """
        Save grid state to a .tm file.

        Args:
            filepath: Output .tm file path
            grid: Grid to save, its catalog is stored alongside
        """
        path = Path(filepath)

        cells_data = []
        uncollapsed_data = []

        for cell in grid.cells_in_order():
            if cell.is_collapsed:
                cells_data.append({
                    "x": cell.x,
                    "y": cell.y,
                    "tile_id": cell.collapsed_tile.id,
                    "placed": cell.placed
                })
            else:
                uncollapsed_data.append({
                    "x": cell.x,
                    "y": cell.y,
                    "candidates": list(cell.candidate_ids())
                })

        map_json = {
            "version": "1.0",
            "grid": {
                "width": grid.width,
                "height": grid.height
            },
            "cells": cells_data,
            "uncollapsed": uncollapsed_data
        }

        with zipfile.ZipFile(path, 'w', zipfile.ZIP_DEFLATED) as zf:
            zf.writestr(MAP_ENTRY, json.dumps(map_json, indent=2))
            zf.writestr(CATALOG_ENTRY, json.dumps(grid.catalog.to_dict(), indent=2))

        logger.info("Saved %dx%d map to %s", grid.width, grid.height, path)

    @staticmethod
    def load(filepath: Union[str, Path]) -> FieldGrid:
        """
        Load a .tm file.

        Cell candidates and placed flags are restored as saved, without
        running propagation.

        Args:
            filepath: Path to .tm file

        Returns:
            FieldGrid using the catalog stored in the file
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        try:
            with zipfile.ZipFile(path, 'r') as zf:
                map_data = json.loads(zf.read(MAP_ENTRY).decode('utf-8'))
                catalog = CatalogLoader.from_json(zf.read(CATALOG_ENTRY).decode('utf-8'))
        except zipfile.BadZipFile:
            raise ValueError(f"Invalid .tm file: {filepath} is not a ZIP archive")
        except KeyError as e:
            raise ValueError(f"Invalid .tm file: missing {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid map.json: {e}")

        try:
            width = map_data['grid']['width']
            height = map_data['grid']['height']
            grid = FieldGrid(width, height, catalog)

            # Cells missing from the file keep the full catalog
            snapshot = grid.snapshot()
            for cell_data in map_data.get('cells', []):
                pos = (cell_data['x'], cell_data['y'])
                snapshot.cells[pos] = ((cell_data['tile_id'],), cell_data.get('placed', False))
            for cell_data in map_data.get('uncollapsed', []):
                pos = (cell_data['x'], cell_data['y'])
                snapshot.cells[pos] = (tuple(cell_data['candidates']), False)
        except KeyError as e:
            raise ValueError(f"Invalid map.json: missing {e}")

        unknown = [pos for pos in snapshot.cells if not grid.in_bounds(pos)]
        if unknown:
            raise ValueError(f"Invalid map.json: cells outside the grid: {unknown}")

        try:
            grid.restore(snapshot)
        except UnknownTileType as e:
            raise ValueError(f"Invalid map.json: {e}")
        logger.info("Loaded %dx%d map from %s", width, height, path)
        return grid
