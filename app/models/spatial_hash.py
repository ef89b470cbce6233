"""
models/spatial_hash.py

Fixed cell-size bucket index for proximity queries.
"""

import math
from typing import Generic, TypeVar

from .geometry import Vec2

T = TypeVar("T")


class SpatialHash(Generic[T]):
    """
    Buckets items by the grid cell containing their position.

    query_near() returns everything in the cell of the query point and its
    eight neighbours. Results are candidates only: callers still have to
    check the exact distance.
    """

    def __init__(self, cell_size: float = 50.0):
        if cell_size <= 0:
            raise ValueError(f"cell_size must be positive (got {cell_size})")
        self.cell_size = cell_size
        self._cells: dict[tuple[int, int], list[T]] = {}
        self._count = 0

    def _cell_of(self, pos: Vec2) -> tuple[int, int]:
        return (math.floor(pos[0] / self.cell_size), math.floor(pos[1] / self.cell_size))

    def insert(self, pos: Vec2, item: T) -> None:
        """Store item in the cell containing pos."""
        self._cells.setdefault(self._cell_of(pos), []).append(item)
        self._count += 1

    def query_near(self, pos: Vec2) -> list[T]:
        """Items in the same and adjacent cells as pos."""
        cx, cy = self._cell_of(pos)
        results: list[T] = []
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                bucket = self._cells.get((cx + dx, cy + dy))
                if bucket:
                    results.extend(bucket)
        return results

    def clear(self) -> None:
        """Remove all items."""
        self._cells.clear()
        self._count = 0

    def __len__(self) -> int:
        return self._count
