#!/usr/bin/env python3
"""CLI script to reverse geocode a point against offline geocoding databases."""
import argparse
import json
import sys
from pathlib import Path
from revgeo.core.config import DEFAULT_LANGUAGE, DEFAULT_RADIUS, LOG_LEVEL
from revgeo.core.errors import GeocodingError
from revgeo.core.models import AddressType
from revgeo.core.rev_geocoder import RevGeocoder
from revgeo.core.store import GeocodingStore
from revgeo.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Find addresses near a point")
    parser.add_argument("lng", type=float, help="Longitude")
    parser.add_argument("lat", type=float, help="Latitude")
    parser.add_argument("databases", type=Path, nargs="+", help="Geocoding database files")
    parser.add_argument("--radius", type=float, default=DEFAULT_RADIUS,
                       help=f"Search radius in meters (default: {DEFAULT_RADIUS})")
    parser.add_argument("--language", default=DEFAULT_LANGUAGE, help="Address language")
    parser.add_argument("--type", dest="types", action="append", default=[],
                       choices=[t.name.lower() for t in AddressType],
                       help="Only return addresses of this type (repeatable)")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="Log level")
    
    args = parser.parse_args()
    setup_logging(args.log_level)
    
    geocoder = RevGeocoder(radius=args.radius, language=args.language)
    for address_type in args.types:
        geocoder.set_filter_enabled(AddressType[address_type.upper()], True)
    
    stores = []
    try:
        for db_path in args.databases:
            if not db_path.exists():
                print(f"Error: File not found: {db_path}", file=sys.stderr)
                sys.exit(1)
            store = GeocodingStore(db_path)
            stores.append(store)
            geocoder.import_database(store)
        
        results = geocoder.find_addresses(args.lng, args.lat)
    except GeocodingError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        for store in stores:
            store.close()
    
    results.sort(key=lambda result: result[1], reverse=True)
    print(json.dumps(
        [{"rank": round(rank, 4), **address.to_dict()} for address, rank in results],
        indent=2,
        ensure_ascii=False
    ))


if __name__ == "__main__":
    main()
