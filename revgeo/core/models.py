"""Data models for reverse geocoding results."""
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Dict, Any, Iterable

from shapely.geometry import mapping
from shapely.geometry.base import BaseGeometry

# Row ids occupy the low 32 bits of a packed entity id
ROW_ID_BITS = 32
ROW_ID_MASK = (1 << ROW_ID_BITS) - 1


class AddressType(IntEnum):
    """Address categories stored in the ``type`` column of ``entities``."""
    COUNTRY = 1
    REGION = 2
    COUNTY = 3
    LOCALITY = 4
    NEIGHBOURHOOD = 5
    STREET = 6
    POSTCODE = 7
    NAME = 8
    ADDRESS = 9

    @staticmethod
    def build_filter(types: Iterable["AddressType"]) -> str:
        """
        Build the SQL condition restricting entities to the given types.
        
        Types are sorted so that equal sets produce identical SQL.
        """
        values = ",".join(str(int(t)) for t in sorted(set(types)))
        return f"type IN ({values})"


@dataclass(frozen=True)
class EntityId:
    """
    Identifier of a geocoding entity.
    
    ``index`` is 0 for an entity stored directly as a row and the 1-based
    position of the house number for an interpolated address.
    """
    row_id: int
    index: int = 0

    def __post_init__(self):
        if not 0 <= self.row_id <= ROW_ID_MASK:
            raise ValueError(f"Row id out of range: {self.row_id}")
        if not 0 <= self.index <= ROW_ID_MASK:
            raise ValueError(f"Interpolation index out of range: {self.index}")

    @property
    def interpolated(self) -> bool:
        return self.index > 0

    @property
    def packed(self) -> int:
        """64-bit form: interpolation index in the high word, row id in the low word."""
        return (self.index << ROW_ID_BITS) | self.row_id

    @classmethod
    def unpack(cls, packed: int) -> "EntityId":
        return cls(row_id=packed & ROW_ID_MASK, index=packed >> ROW_ID_BITS)


@dataclass(frozen=True)
class GeometryInfo:
    """Decoded geometry of one entity, in the coordinate space of the caller."""
    entity_id: int
    geometry: BaseGeometry


@dataclass(frozen=True)
class Address:
    """A resolved address."""
    type: AddressType
    country: Optional[str] = None
    region: Optional[str] = None
    county: Optional[str] = None
    locality: Optional[str] = None
    neighbourhood: Optional[str] = None
    street: Optional[str] = None
    postcode: Optional[str] = None
    name: Optional[str] = None
    house_number: Optional[str] = None
    geometry: Optional[BaseGeometry] = None
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "type": self.type.name.lower(),
            "country": self.country,
            "region": self.region,
            "county": self.county,
            "locality": self.locality,
            "neighbourhood": self.neighbourhood,
            "street": self.street,
            "postcode": self.postcode,
            "name": self.name,
            "house_number": self.house_number,
            "geometry": mapping(self.geometry) if self.geometry is not None else None,
        }
