"""House number interpolation along street geometry."""
import re
from typing import List, Tuple

import shapely
from shapely.geometry import LineString, MultiLineString

from revgeo.core.errors import InterpolationError
from revgeo.core.features import Feature, FeatureReader

ENTRY_SEPARATOR = "|"
RANGE_PATTERN = re.compile(r"^(\d+)\s*-\s*(\d+)(?::(\d+))?$")

# Numbers on one side of a street share parity
DEFAULT_STEP = 2


def parse_entry(entry: str) -> List[str]:
    """
    Expand one house number entry into its labels.
    
    Args:
        entry: Either a single label ("12", "12a") or a range "start-end[:step]"
        
    Returns:
        List of house number labels
    """
    entry = entry.strip()
    if not entry:
        raise InterpolationError("Empty house number entry")
    
    match = RANGE_PATTERN.match(entry)
    if not match:
        return [entry]
    
    start, end = int(match.group(1)), int(match.group(2))
    step = int(match.group(3)) if match.group(3) else DEFAULT_STEP
    if step <= 0:
        raise InterpolationError(f"Invalid house number step in '{entry}'")
    if start > end:
        step = -step
    return [str(n) for n in range(start, end + (1 if step > 0 else -1), step)]


def _as_line(geometry):
    if isinstance(geometry, LineString):
        return geometry
    if isinstance(geometry, MultiLineString):
        merged = shapely.line_merge(geometry)
        if isinstance(merged, LineString):
            return merged
    return None


class AddressInterpolator:
    """Expands a compact house number specification into individual addresses."""
    
    def __init__(self, house_numbers: str):
        """
        Initialize interpolator.
        
        Args:
            house_numbers: Entries separated by '|', one per feature of the
                associated street geometry
        """
        self.entries = [parse_entry(e) for e in house_numbers.split(ENTRY_SEPARATOR)]
    
    def enumerate_addresses(self, reader: FeatureReader) -> List[Tuple[str, List[Feature]]]:
        """
        Enumerate the addresses described by the specification.
        
        Args:
            reader: Reader over the features of the street entity
            
        Returns:
            Ordered list of (house number, features) pairs
        """
        features = reader.read_feature_collection()
        if len(features) != len(self.entries):
            raise InterpolationError(
                f"House number entries ({len(self.entries)}) do not match "
                f"features ({len(features)})"
            )
        
        addresses = []
        for labels, feature in zip(self.entries, features):
            line = _as_line(feature.geometry) if len(labels) > 1 else None
            if line is None or line.is_empty:
                addresses.extend((label, [feature]) for label in labels)
                continue
            
            count = len(labels)
            for i, label in enumerate(labels):
                point = line.interpolate(i / (count - 1), normalized=True)
                addresses.append((label, [Feature(geometry=point)]))
        return addresses
