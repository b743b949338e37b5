"""Reverse geocoding engine federating queries over imported databases."""
import functools
import math
import threading
from typing import Callable, List, Sequence, Tuple

from revgeo.core.address_loader import load_address
from revgeo.core.cache import LRUCache
from revgeo.core.config import ADDRESS_CACHE_SIZE, DEFAULT_LANGUAGE, DEFAULT_RADIUS, QUERY_CACHE_SIZE
from revgeo.core.database import Bounds, Database, DatabaseRegistry
from revgeo.core.errors import GeocodingError, GeometryDecodeError, InterpolationError
from revgeo.core.features import FeatureReader, collect_geometry, compose, translate_by
from revgeo.core.interpolation import AddressInterpolator
from revgeo.core.models import Address, AddressType, EntityId, GeometryInfo
from revgeo.core.projections import meters_per_degree
from revgeo.core.quadindex import QuadIndex, TileBlock
from revgeo.core.store import GeocodingStore
from revgeo.utils.logging import log_error, log_structured
from revgeo.utils.timing import Timer


def bounds_distance(bounds: Bounds, lng: float, lat: float) -> float:
    """
    Distance in meters from (lng, lat) to the nearest point of ``bounds``.
    
    Degrees are scaled to meters with the local scale at the query latitude.
    Envelopes crossing the antimeridian are not handled.
    """
    min_lng, min_lat, max_lng, max_lat = bounds
    nearest_lng = min(max(lng, min_lng), max_lng)
    nearest_lat = min(max(lat, min_lat), max_lat)
    meters_lng, meters_lat = meters_per_degree(lat)
    return math.hypot((nearest_lng - lng) * meters_lng, (nearest_lat - lat) * meters_lat)


def _validate_radius(radius: float) -> float:
    radius = float(radius)
    if not math.isfinite(radius):
        raise ValueError(f"Search radius must be finite: {radius}")
    return radius


class RevGeocoder:
    """
    Reverse geocoder over one or more offline databases.
    
    Every public method holds a single reentrant lock for its whole duration,
    so an instance executes one operation at a time regardless of how many
    threads use it. A query therefore always sees one consistent radius,
    language and filter set.
    """
    
    def __init__(
        self,
        radius: float = DEFAULT_RADIUS,
        language: str = DEFAULT_LANGUAGE,
        address_cache_size: int = ADDRESS_CACHE_SIZE,
        query_cache_size: int = QUERY_CACHE_SIZE
    ):
        """
        Initialize geocoder.
        
        Args:
            radius: Search radius in meters
            language: Language used for address text
            address_cache_size: Capacity of the address cache
            query_cache_size: Capacity of the geometry query cache
        """
        self._lock = threading.RLock()
        self._databases = DatabaseRegistry()
        self._radius = _validate_radius(radius)
        self._language = language
        self._enabled_filters: List[AddressType] = []
        self._address_cache = LRUCache(address_cache_size, name="address")
        self._query_cache = LRUCache(query_cache_size, name="query")
        self._entity_query_counter = 0
    
    def import_database(self, store: GeocodingStore) -> str:
        """
        Register a geocoding database.
        
        Args:
            store: Open store; it stays owned by the caller
            
        Returns:
            Identifier of the new database ("db0", "db1", ...)
        """
        with self._lock:
            return self._databases.import_store(store)
    
    @property
    def databases(self) -> List[Database]:
        with self._lock:
            return list(self._databases)
    
    def get_radius(self) -> float:
        with self._lock:
            return self._radius
    
    def set_radius(self, radius: float):
        """
        Set the search radius in meters; a radius <= 0 matches nothing.
        
        Raises:
            ValueError: If the radius is NaN or infinite
        """
        radius = _validate_radius(radius)
        with self._lock:
            self._radius = radius
    
    def get_language(self) -> str:
        with self._lock:
            return self._language
    
    def set_language(self, language: str):
        """Set the address language. Cached addresses are discarded."""
        with self._lock:
            self._language = language
            self._address_cache.clear()
    
    def is_filter_enabled(self, address_type: AddressType) -> bool:
        with self._lock:
            return address_type in self._enabled_filters
    
    def set_filter_enabled(self, address_type: AddressType, enabled: bool):
        """
        Enable or disable a type filter.
        
        While no filter is enabled all address types are returned.
        """
        with self._lock:
            if enabled and address_type not in self._enabled_filters:
                self._enabled_filters.append(address_type)
            elif not enabled and address_type in self._enabled_filters:
                self._enabled_filters.remove(address_type)
    
    @property
    def entity_query_counter(self) -> int:
        """Number of entity queries issued against the stores so far."""
        with self._lock:
            return self._entity_query_counter
    
    def find_addresses(self, lng: float, lat: float) -> List[Tuple[Address, float]]:
        """
        Find addresses near a point.
        
        Results of each database are appended in registration order; within a
        database they are ordered nearest first. No global ordering is applied.
        
        Args:
            lng: Longitude of the query point
            lat: Latitude of the query point
            
        Returns:
            List of (address, rank) with rank in (0, 1]
        """
        with self._lock, Timer("find_addresses", lng=lng, lat=lat):
            addresses = []
            radius = self._radius
            if radius <= 0:
                return addresses
            
            for database in self._databases:
                if database.bounds is not None and bounds_distance(database.bounds, lng, lat) > radius:
                    log_structured("debug", "Database outside search radius", database_id=database.id)
                    continue
                
                try:
                    index = QuadIndex(functools.partial(self._find_geometry_info, database))
                    for entity_id, distance in index.find_geometries(lng, lat, radius):
                        rank = 1.0 - distance / radius
                        if rank > 0:
                            addresses.append((self._get_address(database, entity_id), rank))
                except GeocodingError as e:
                    log_error(e, {
                        "operation": "find_addresses",
                        "database_id": database.id,
                        "lng": lng,
                        "lat": lat,
                    })
                    raise
            return addresses
    
    def _get_address(self, database: Database, packed_id: int) -> Address:
        key = (database.id, packed_id)
        found, address = self._address_cache.read(key)
        if not found:
            address = load_address(
                database.store,
                EntityId.unpack(packed_id),
                self._language,
                translate_by(database.origin)
            )
            self._address_cache.put(key, address)
        return address
    
    def _build_entity_query(self, blocks: Sequence[TileBlock]) -> str:
        conditions = " OR ".join(block.sql_condition("quadindex") for block in blocks)
        sql = f"SELECT id, features, housenumbers FROM entities WHERE ({conditions})"
        if self._enabled_filters:
            sql += f" AND ({AddressType.build_filter(self._enabled_filters)})"
        return sql
    
    def _find_geometry_info(
        self,
        database: Database,
        blocks: Sequence[TileBlock],
        converter: Callable
    ) -> List[GeometryInfo]:
        """
        Resolve the entities stored in the given tile blocks.
        
        Rows whose geometry or house numbers cannot be decoded are logged and
        left out; store errors propagate.
        """
        with self._lock:
            sql = self._build_entity_query(blocks)
            key = (database.id, sql)
            found, geometry_infos = self._query_cache.read(key)
            if found:
                return geometry_infos
            
            rows = database.store.execute(sql)
            self._entity_query_counter += 1
            
            transform = compose(translate_by(database.origin), converter)
            geometry_infos = []
            for row_id, blob, house_numbers in rows:
                reader = FeatureReader(blob, transform)
                try:
                    if house_numbers:
                        interpolator = AddressInterpolator(house_numbers)
                        for i, (_, features) in enumerate(interpolator.enumerate_addresses(reader)):
                            entity_id = EntityId(row_id=row_id, index=i + 1)
                            geometry_infos.append(GeometryInfo(entity_id.packed, collect_geometry(features)))
                    else:
                        geometry = collect_geometry(reader.read_feature_collection())
                        geometry_infos.append(GeometryInfo(EntityId(row_id).packed, geometry))
                except (GeometryDecodeError, InterpolationError) as e:
                    log_error(e, {
                        "operation": "find_geometry_info",
                        "database_id": database.id,
                        "entity_id": row_id,
                    })
            
            self._query_cache.put(key, geometry_infos)
            return geometry_infos
