"""Export-Modul: Terminal-Darstellung (Rich) des Buchungsrasters."""

from export.grid_renderer import cell_glyph, render_grid_rows, render_legend

__all__ = ["cell_glyph", "render_grid_rows", "render_legend"]
