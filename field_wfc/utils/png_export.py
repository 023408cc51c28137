"""
Export grid to PNG image.
"""

from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image, ImageDraw

from ..core.grid import FieldGrid


def export_grid_to_png(
    filepath: Union[str, Path],
    grid: FieldGrid,
    tile_size: int = 16,
    background_color: Optional[Tuple[int, int, int]] = None
) -> bool:
    """
    Export the current grid state to a PNG image.

    Args:
        filepath: Output PNG file path
        grid: FieldGrid with current state
        tile_size: Size of each cell in output pixels
        background_color: Color for uncollapsed cells

    Returns:
        True if export successful, False otherwise
    """
    if grid.width == 0 or grid.height == 0 or tile_size < 1:
        return False

    if background_color is None:
        background_color = (200, 200, 200)

    image = Image.new('RGB', (grid.width * tile_size, grid.height * tile_size), background_color)
    draw = ImageDraw.Draw(image)

    # Flat block of the tile color per collapsed cell
    for resolved in grid.resolved_tiles():
        left = resolved.x * tile_size
        top = resolved.y * tile_size
        draw.rectangle(
            [left, top, left + tile_size - 1, top + tile_size - 1],
            fill=tuple(resolved.color)
        )

    path = Path(filepath)
    try:
        image.save(path, 'PNG')
    except OSError:
        return False
    return True
