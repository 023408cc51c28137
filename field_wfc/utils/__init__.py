from .png_export import export_grid_to_png

__all__ = ['export_grid_to_png']
