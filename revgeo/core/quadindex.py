"""Quad tree spatial index over Web Mercator tiles.

Every entity is stored under the key of the deepest tile that fully contains
its bounding box. A proximity search therefore has to look at the tiles of
every level that intersect the search area. The tiles of one level are
passed to the lookup as a single rectangular block, so the work per query
does not grow with the number of tiles covered.
"""
import math
from dataclasses import dataclass
from typing import Callable, Iterator, List, Sequence, Tuple

import numpy as np
import shapely
from shapely.geometry import Point

from revgeo.core.config import QUAD_BATCH_SIZE
from revgeo.core.models import GeometryInfo
from revgeo.core.projections import MERCATOR_EXTENT, meters_per_degree, local_converter, to_mercator

MAX_LEVEL = 18

QueryResult = Tuple[int, float]


def wgs84_converter(coords: np.ndarray) -> np.ndarray:
    return coords


def quad_key(level: int, x: int, y: int) -> int:
    """Key of tile (x, y) at ``level``; keys of different levels never overlap."""
    return ((1 << (2 * level)) - 1) // 3 + y * (1 << level) + x


@dataclass(frozen=True)
class TileBlock:
    """Rectangle of tiles x0..x1, y0..y1 (inclusive) at one level."""
    level: int
    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def key_range(self) -> Tuple[int, int]:
        """Smallest and largest key in the block; keys of a row are consecutive."""
        return quad_key(self.level, self.x0, self.y0), quad_key(self.level, self.x1, self.y1)

    def contains(self, key: int) -> bool:
        offset = key - quad_key(self.level, 0, 0)
        if not 0 <= offset < (1 << (2 * self.level)):
            return False
        x, y = offset & ((1 << self.level) - 1), offset >> self.level
        return self.x0 <= x <= self.x1 and self.y0 <= y <= self.y1

    def sql_condition(self, column: str = "quadindex") -> str:
        """
        SQL condition matching exactly the keys of the block.
        
        The key range alone is exact when the block is a single row or spans
        full rows; otherwise the column within the row is checked as well.
        """
        first, last = self.key_range
        tiles = 1 << self.level
        condition = f"{column} BETWEEN {first} AND {last}"
        if self.y0 == self.y1 or (self.x0 == 0 and self.x1 == tiles - 1):
            return condition
        base = quad_key(self.level, 0, 0)
        return f"({condition} AND ({column} - {base}) % {tiles} BETWEEN {self.x0} AND {self.x1})"


# (tile blocks, point converter) -> decoded geometries of the entities in those tiles.
# The converter maps database coordinates, already shifted by the database
# origin, into the WGS84 space the index works in.
GeometryLookup = Callable[[Sequence[TileBlock], Callable], List[GeometryInfo]]


def _tile_range(level: int, min_lng: float, min_lat: float, max_lng: float, max_lat: float):
    tiles = 1 << level
    tile_size = 2.0 * MERCATOR_EXTENT / tiles
    min_x, min_y = to_mercator(min_lng, min_lat)
    max_x, max_y = to_mercator(max_lng, max_lat)

    def clamp(value: float) -> int:
        return max(0, min(tiles - 1, int(math.floor(value))))

    return (
        clamp((min_x + MERCATOR_EXTENT) / tile_size),
        clamp((min_y + MERCATOR_EXTENT) / tile_size),
        clamp((max_x + MERCATOR_EXTENT) / tile_size),
        clamp((max_y + MERCATOR_EXTENT) / tile_size),
    )


def calculate_quad_index(min_lng: float, min_lat: float, max_lng: float, max_lat: float) -> int:
    """
    Calculate the tile key an entity with the given bounding box is stored under.

    Args:
        min_lng, min_lat, max_lng, max_lat: Entity bounds in WGS84

    Returns:
        Key of the deepest tile containing the whole bounding box
    """
    for level in range(MAX_LEVEL, 0, -1):
        x0, y0, x1, y1 = _tile_range(level, min_lng, min_lat, max_lng, max_lat)
        if x0 == x1 and y0 == y1:
            return quad_key(level, x0, y0)
    return quad_key(0, 0, 0)


class QuadIndex:
    """Proximity search driven by a caller supplied geometry lookup."""

    def __init__(self, lookup: GeometryLookup, batch_size: int = QUAD_BATCH_SIZE):
        """
        Initialize index.

        Args:
            lookup: Resolves a batch of tile blocks into entity geometries
            batch_size: Maximum number of tile blocks per lookup call
        """
        self.lookup = lookup
        self.batch_size = max(1, batch_size)

    def _candidate_batches(self, lng: float, lat: float, radius: float) -> Iterator[List[TileBlock]]:
        meters_lng, meters_lat = meters_per_degree(lat)
        delta_lng = radius / meters_lng if meters_lng > 1e-9 else 360.0
        delta_lat = radius / meters_lat
        bounds = (
            max(-180.0, lng - delta_lng),
            max(-90.0, lat - delta_lat),
            min(180.0, lng + delta_lng),
            min(90.0, lat + delta_lat),
        )

        blocks = [TileBlock(level, *_tile_range(level, *bounds)) for level in range(MAX_LEVEL + 1)]
        for i in range(0, len(blocks), self.batch_size):
            yield blocks[i:i + self.batch_size]

    def find_geometries(self, lng: float, lat: float, radius: float) -> List[QueryResult]:
        """
        Find all entities within ``radius`` meters of (lng, lat).

        Distances are measured in a local metric plane centred on the query
        point (degrees scaled by the meters per degree at its latitude).

        Args:
            lng: Query longitude
            lat: Query latitude
            radius: Search radius in meters

        Returns:
            List of (entity id, distance in meters), nearest first
        """
        if not radius >= 0:
            return []

        to_local = local_converter(lng, lat)
        center = Point(0.0, 0.0)
        distances = {}
        for blocks in self._candidate_batches(lng, lat, radius):
            for info in self.lookup(blocks, wgs84_converter):
                if info.geometry is None or info.geometry.is_empty:
                    continue
                distance = shapely.transform(info.geometry, to_local).distance(center)
                if distance <= radius and distance < distances.get(info.entity_id, math.inf):
                    distances[info.entity_id] = distance

        return sorted(distances.items(), key=lambda result: (result[1], result[0]))
