#!/usr/bin/env python3
"""
field-wfc - solve a Wave Function Collapse field from the command line.
"""

import argparse
import logging
import sys
from typing import List, Optional

from PySide6.QtCore import QCoreApplication

from .core import (
    CatalogLoader, CollapseSolver, MapSaver, SolverSettings,
    default_catalog, validate_grid
)
from .logging_config import setup_logging
from .utils import export_grid_to_png

logger = logging.getLogger(__name__)

EXIT_FINISHED = 0
EXIT_CONTRADICTION = 1
EXIT_BAD_INPUT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="field-wfc",
        description="Fill a tile field with Wave Function Collapse."
    )
    parser.add_argument("--width", type=int, default=16, help="grid width in cells")
    parser.add_argument("--height", type=int, default=16, help="grid height in cells")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument("--catalog", default=None,
                        help="catalog file (.json or .tr), defaults to the built-in terrain")
    parser.add_argument("--max-retries", type=int, default=0,
                        help="alternative tiles to try after a contradiction")
    parser.add_argument("--png", default=None, help="write the field as a PNG image")
    parser.add_argument("--tile-size", type=int, default=16, help="PNG pixels per cell")
    parser.add_argument("--map", default=None, help="write the field as a .tm map file")
    parser.add_argument("--log-file", default=None, help="write a debug log to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="show progress on the console")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(
        log_file=args.log_file,
        console_level=logging.INFO if args.verbose else logging.WARNING
    )

    # Solver objects are QObjects
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName("field-wfc")

    try:
        catalog = CatalogLoader.load(args.catalog) if args.catalog else default_catalog()
        settings = SolverSettings(
            width=args.width,
            height=args.height,
            seed=args.seed,
            max_retries=args.max_retries
        )
    except (FileNotFoundError, ValueError, KeyError) as e:
        logger.error("%s", e)
        return EXIT_BAD_INPUT

    solver = CollapseSolver(catalog, settings)
    success = solver.run()

    if success:
        for error in validate_grid(solver.grid):
            logger.warning(error)
    else:
        logger.error("Contradiction at %s", solver.contradiction_at)

    if args.png:
        if not export_grid_to_png(args.png, solver.grid, tile_size=args.tile_size):
            logger.error("Could not write %s", args.png)
    if args.map:
        MapSaver.save(args.map, solver.grid)

    return EXIT_FINISHED if success else EXIT_CONTRADICTION


if __name__ == "__main__":
    sys.exit(main())
