from .geometry import Cell
from .tiles import MapGrid, Tile

__all__ = ["Cell", "MapGrid", "Tile"]
