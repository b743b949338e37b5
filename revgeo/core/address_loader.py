"""Loading of full address records from a geocoding store."""
from typing import Optional

from revgeo.core.errors import InterpolationError, StoreAccessError
from revgeo.core.features import CoordinateTransform, FeatureReader, collect_geometry
from revgeo.core.interpolation import AddressInterpolator
from revgeo.core.models import Address, AddressType, EntityId
from revgeo.core.store import NAME_FIELDS, GeocodingStore


def load_address(
    store: GeocodingStore,
    entity_id: EntityId,
    language: str,
    transform: Optional[CoordinateTransform] = None
) -> Address:
    """
    Load the address of an entity.
    
    For an interpolated entity the house numbers of the row are expanded
    again and the entry at ``entity_id.index`` is returned.
    
    Args:
        store: Store the entity belongs to
        entity_id: Entity to load
        language: Language of the text fields
        transform: Coordinate transform for the geometry (local -> WGS84)
        
    Returns:
        Address object
    """
    row = store.get_entity(entity_id.row_id)
    if row is None:
        raise StoreAccessError(f"Entity {entity_id.row_id} not found")
    
    names = store.get_names((row[f"{f}_id"] for f in NAME_FIELDS), language)
    house_number = None
    
    reader = FeatureReader(row["features"], transform)
    if entity_id.interpolated:
        if not row["housenumbers"]:
            raise InterpolationError(f"Entity {entity_id.row_id} has no house numbers")
        addresses = AddressInterpolator(row["housenumbers"]).enumerate_addresses(reader)
        if entity_id.index > len(addresses):
            raise InterpolationError(
                f"Entity {entity_id.row_id} has no house number at index {entity_id.index}"
            )
        house_number, features = addresses[entity_id.index - 1]
    else:
        features = reader.read_feature_collection()
    
    return Address(
        type=AddressType(row["type"]),
        house_number=house_number,
        geometry=collect_geometry(features),
        **{field: names.get(row[f"{field}_id"]) for field in NAME_FIELDS}
    )
