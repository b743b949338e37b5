"""Registry of imported geocoding databases."""
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from revgeo.core.errors import DatabaseImportError
from revgeo.core.store import GeocodingStore
from revgeo.utils.logging import log_structured

Bounds = Tuple[float, float, float, float]


@dataclass(frozen=True)
class Database:
    """
    One imported geocoding database.
    
    The store is shared with the caller; the registry never closes it.
    """
    id: str
    store: GeocodingStore
    bounds: Optional[Bounds]
    origin: Tuple[float, float]


def _parse_tuple(store: GeocodingStore, name: str, size: int) -> Optional[Tuple[float, ...]]:
    value = store.get_metadata(name)
    if value is None:
        return None
    
    parts = str(value).split(",")
    if len(parts) != size:
        raise DatabaseImportError(
            f"Metadata '{name}' must have {size} comma separated values, got '{value}'"
        )
    try:
        return tuple(float(p) for p in parts)
    except ValueError as e:
        raise DatabaseImportError(f"Metadata '{name}' is not numeric: '{value}'") from e


def read_origin(store: GeocodingStore) -> Tuple[float, float]:
    """Read the local coordinate origin, defaulting to (0, 0)."""
    origin = _parse_tuple(store, "origin", 2)
    return origin if origin is not None else (0.0, 0.0)


def read_bounds(store: GeocodingStore) -> Optional[Bounds]:
    """Read the (min_lng, min_lat, max_lng, max_lat) envelope, or None if unbounded."""
    return _parse_tuple(store, "bounds", 4)


class DatabaseRegistry:
    """Ordered collection of imported databases."""
    
    def __init__(self):
        self._databases: List[Database] = []
    
    def import_store(self, store: GeocodingStore) -> str:
        """
        Register a store.
        
        Args:
            store: Open store to register
            
        Returns:
            Identifier assigned to the database
            
        Raises:
            DatabaseImportError: If the metadata is malformed
        """
        origin = read_origin(store)
        bounds = read_bounds(store)
        database = Database(
            id=f"db{len(self._databases)}",
            store=store,
            bounds=bounds,
            origin=origin,
        )
        self._databases.append(database)
        
        log_structured(
            "info",
            "Imported geocoding database",
            database_id=database.id,
            path=str(store.db_path) if store.db_path else None,
            origin=list(origin),
            bounds=list(bounds) if bounds else None,
        )
        return database.id
    
    def __iter__(self) -> Iterator[Database]:
        return iter(list(self._databases))
    
    def __len__(self) -> int:
        return len(self._databases)
