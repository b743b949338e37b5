"""Decoding of entity geometry blobs.

Geometry is stored as WKB in local planar coordinates relative to the origin
of the database. A GeometryCollection holds one member per feature; any other
geometry type is a single feature.
"""
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np
import shapely
from shapely import wkb
from shapely.errors import ShapelyError
from shapely.geometry.base import BaseGeometry

from revgeo.core.errors import GeometryDecodeError

# Maps an (N, 2) array of local coordinates to an (N, 2) array in caller space
CoordinateTransform = Callable[[np.ndarray], np.ndarray]


@dataclass(frozen=True)
class Feature:
    """A single decoded feature."""
    geometry: Optional[BaseGeometry]


def translate_by(origin) -> CoordinateTransform:
    """Return a transform adding ``origin`` to every coordinate."""
    offset = np.asarray(origin, dtype=float)
    return lambda coords: coords + offset


def compose(first: CoordinateTransform, second: CoordinateTransform) -> CoordinateTransform:
    """Return a transform applying ``first`` and then ``second``."""
    return lambda coords: second(first(coords))


class FeatureReader:
    """Reads the features encoded in one ``entities.features`` blob."""
    
    def __init__(self, blob: bytes, transform: Optional[CoordinateTransform] = None):
        """
        Initialize reader.
        
        Args:
            blob: WKB bytes as stored in the database
            transform: Coordinate transform applied to every decoded vertex
        """
        self.blob = blob
        self.transform = transform
    
    def read_geometry(self) -> BaseGeometry:
        """Decode the blob into a single (possibly collection) geometry."""
        if not self.blob:
            raise GeometryDecodeError("Empty geometry blob")
        try:
            geometry = wkb.loads(bytes(self.blob))
        except (ShapelyError, ValueError, TypeError) as e:
            raise GeometryDecodeError(f"Invalid geometry blob: {e}") from e
        
        if self.transform is not None and not geometry.is_empty:
            geometry = shapely.transform(geometry, self.transform)
        return geometry
    
    def read_feature_collection(self) -> List[Feature]:
        """Decode the blob into its list of features."""
        geometry = self.read_geometry()
        if geometry.geom_type == "GeometryCollection":
            return [Feature(geometry=part) for part in geometry.geoms]
        return [Feature(geometry=geometry)]


def collect_geometry(features: List[Feature]) -> BaseGeometry:
    """Combine the geometries of ``features`` into one geometry."""
    geometries = [f.geometry for f in features if f.geometry is not None]
    if len(geometries) == 1:
        return geometries[0]
    return shapely.GeometryCollection(geometries)
