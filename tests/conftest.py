"""Pytest configuration and fixtures."""
import pytest
import tempfile
import shutil
from pathlib import Path
import duckdb
from shapely import wkb
from shapely.geometry import Point, LineString, GeometryCollection
from revgeo.core.models import AddressType
from revgeo.core.quadindex import calculate_quad_index
from revgeo.core.rev_geocoder import RevGeocoder
from revgeo.core.store import GeocodingStore, NAME_FIELDS


SCHEMA = [
    "CREATE TABLE metadata (name VARCHAR, value VARCHAR)",
    f"""
    CREATE TABLE entities (
        id INTEGER PRIMARY KEY,
        quadindex BIGINT,
        type INTEGER,
        features BLOB,
        housenumbers VARCHAR,
        {", ".join(f"{field}_id INTEGER" for field in NAME_FIELDS)}
    )
    """,
    "CREATE TABLE names (id INTEGER, lang VARCHAR, name VARCHAR)",
]


def write_database(db_path, entities, names=(), metadata=None):
    """
    Write a geocoding database.
    
    Args:
        db_path: Target file
        entities: Dicts with id, type, geometry (local coordinates) and optional
            housenumbers, blob and <field>_id keys
        names: (id, lang, name) tuples
        metadata: Metadata values by name
    """
    metadata = metadata or {}
    
    conn = duckdb.connect(str(db_path))
    for statement in SCHEMA:
        conn.execute(statement)
    
    if metadata:
        conn.executemany("INSERT INTO metadata VALUES (?, ?)", list(metadata.items()))
    
    rows = []
    for entity in entities:
        origin = [float(v) for v in metadata.get("origin", "0,0").split(",")]
        geometry = entity["geometry"]
        min_x, min_y, max_x, max_y = geometry.bounds
        quadindex = calculate_quad_index(
            min_x + origin[0], min_y + origin[1], max_x + origin[0], max_y + origin[1]
        )
        rows.append([
            entity["id"],
            quadindex,
            int(entity["type"]),
            entity.get("blob", wkb.dumps(geometry)),
            entity.get("housenumbers"),
        ] + [entity.get(f"{field}_id") for field in NAME_FIELDS])
    
    placeholders = ", ".join("?" for _ in range(5 + len(NAME_FIELDS)))
    if rows:
        conn.executemany(f"INSERT INTO entities VALUES ({placeholders})", rows)
    if names:
        conn.executemany("INSERT INTO names VALUES (?, ?, ?)", list(names))
    conn.close()
    return db_path


@pytest.fixture
def temp_dir():
    """Create temporary directory."""
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path)


@pytest.fixture
def make_database(temp_dir):
    """Factory writing databases into the temporary directory."""
    def _make(name, entities=(), names=(), metadata=None):
        return write_database(temp_dir / f"{name}.duckdb", entities, names, metadata)
    return _make


@pytest.fixture
def sample_entities():
    """Entities around (0, 0) in local coordinates."""
    return [
        {
            "id": 1,
            "type": AddressType.STREET,
            "geometry": LineString([(-0.001, 0.0002), (0.001, 0.0002)]),
            "street_id": 10,
            "locality_id": 20,
        },
        {
            "id": 2,
            "type": AddressType.NAME,
            "geometry": Point(0.0001, 0.0),
            "name_id": 30,
            "street_id": 10,
            "locality_id": 20,
        },
        {
            "id": 3,
            "type": AddressType.ADDRESS,
            "geometry": GeometryCollection([
                LineString([(-0.0004, -0.0001), (0.0004, -0.0001)]),
                Point(0.0006, -0.0001),
            ]),
            "housenumbers": "1-9|11",
            "street_id": 10,
            "locality_id": 20,
        },
        {
            "id": 4,
            "type": AddressType.NAME,
            "geometry": Point(0.5, 0.5),
            "name_id": 31,
        },
    ]


@pytest.fixture
def sample_names():
    """Names referenced by the sample entities."""
    return [
        (10, "", "Main Street"),
        (10, "de", "Hauptstraße"),
        (20, "", "Springfield"),
        (30, "", "Cafe"),
        (31, "", "Faraway"),
    ]


@pytest.fixture
def sample_db_path(temp_dir, sample_entities, sample_names):
    """Database with origin (0, 0) and bounds (-1, -1, 1, 1)."""
    return write_database(
        temp_dir / "sample.duckdb",
        sample_entities,
        sample_names,
        {"origin": "0,0", "bounds": "-1,-1,1,1"},
    )


@pytest.fixture
def sample_store(sample_db_path):
    """Open read-only store for the sample database."""
    store = GeocodingStore(sample_db_path)
    yield store
    store.close()


@pytest.fixture
def geocoder(sample_store):
    """Create geocoder with the sample database imported."""
    geocoder = RevGeocoder(radius=100)
    geocoder.import_database(sample_store)
    return geocoder
