"""Tests for the quad tree index."""
from shapely.geometry import Point, LineString, box
from revgeo.core.models import GeometryInfo
from revgeo.core.quadindex import MAX_LEVEL, QuadIndex, TileBlock, calculate_quad_index, quad_key


def make_lookup(geometries, calls=None):
    """In-memory lookup over {entity id: WGS84 geometry}."""
    keys = {entity_id: calculate_quad_index(*geometry.bounds) for entity_id, geometry in geometries.items()}
    
    def lookup(blocks, converter):
        if calls is not None:
            calls.append(list(blocks))
        return [GeometryInfo(entity_id, geometries[entity_id])
                for entity_id, key in keys.items()
                if any(block.contains(key) for block in blocks)]
    
    return lookup


def test_quad_keys_unique_across_levels():
    """Test that tile keys of different levels never collide."""
    keys = [quad_key(level, x, y)
            for level in range(5)
            for x in range(1 << level)
            for y in range(1 << level)]
    assert len(set(keys)) == len(keys)
    assert quad_key(0, 0, 0) == 0
    assert quad_key(1, 0, 0) == 1


def test_calculate_quad_index():
    """Test bucket selection for small and large boxes."""
    assert calculate_quad_index(-180, -85, 180, 85) == 0
    
    small = calculate_quad_index(10.0, 10.0, 10.0001, 10.0001)
    assert small >= quad_key(MAX_LEVEL - 1, 0, 0)
    
    # A box straddling the equator and prime meridian only fits the root tile
    assert calculate_quad_index(-0.001, -0.001, 0.001, 0.001) == 0


def test_find_geometries_within_radius():
    """Test distances and radius cut-off."""
    # One degree of longitude at the equator is ~111319.5 m
    geometries = {
        1: Point(0.0008, 0.0),
        2: Point(0.0009, 0.0),
        3: LineString([(-0.001, 0.0002), (0.001, 0.0002)]),
        4: Point(0.0, 0.0),
    }
    results = QuadIndex(make_lookup(geometries)).find_geometries(0.0, 0.0, 100.0)
    
    ids = [entity_id for entity_id, _ in results]
    assert ids == [4, 3, 1]
    distances = dict(results)
    assert distances[4] == 0.0
    assert abs(distances[3] - 22.26) < 0.1
    assert abs(distances[1] - 89.06) < 0.1


def test_find_geometries_never_omits_matches():
    """Test that entities in deep tiles and in shallow tiles are both found."""
    geometries = {
        1: Point(12.34561, 45.67891),
        2: box(12.0, 45.0, 13.0, 46.0),
        3: LineString([(12.3450, 45.6789), (12.3462, 45.6789)]),
    }
    results = QuadIndex(make_lookup(geometries)).find_geometries(12.3456, 45.6789, 50.0)
    
    assert {entity_id for entity_id, _ in results} == {1, 2, 3}


def test_find_geometries_batches():
    """Test that the lookup receives batches of at most batch_size tile blocks."""
    calls = []
    index = QuadIndex(make_lookup({1: Point(0.5, 0.5)}, calls), batch_size=3)
    index.find_geometries(0.5, 0.5, 500.0)
    
    assert calls
    assert all(1 <= len(batch) <= 3 for batch in calls)


def test_negative_radius():
    """Test that a negative radius matches nothing."""
    assert QuadIndex(make_lookup({1: Point(0, 0)})).find_geometries(0, 0, -1) == []


def test_tile_block_sql_condition():
    """Test that block conditions select exactly the tiles of the block."""
    inner = TileBlock(2, 1, 1, 2, 2)
    assert inner.key_range == (10, 15)
    assert inner.sql_condition() == "(quadindex BETWEEN 10 AND 15 AND (quadindex - 5) % 4 BETWEEN 1 AND 2)"
    
    assert TileBlock(2, 1, 1, 2, 1).sql_condition() == "quadindex BETWEEN 10 AND 11"
    assert TileBlock(1, 0, 0, 1, 1).sql_condition("q") == "q BETWEEN 1 AND 4"
    
    expected = {quad_key(2, x, y) for x in (1, 2) for y in (1, 2)}
    assert {key for key in range(64) if inner.contains(key)} == expected


def test_large_radius_lookup_calls_bounded():
    """Test that wide searches cost one block per level, not one key per tile."""
    # 0.3 degrees of longitude at 10N is ~32.9 km
    geometries = {1: Point(20.3, 10.0), 2: Point(22.0, 10.0)}
    
    for radius, expected in ((50_000.0, {1}), (500_000.0, {1, 2})):
        calls = []
        results = QuadIndex(make_lookup(geometries, calls)).find_geometries(20.0, 10.0, radius)
        
        assert len(calls) == 1
        assert len(calls[0]) == MAX_LEVEL + 1
        assert sorted(block.level for block in calls[0]) == list(range(MAX_LEVEL + 1))
        assert set(dict(results)) == expected


def test_non_finite_radius_matches_nothing():
    """Test that a NaN radius returns no results without touching the lookup."""
    calls = []
    index = QuadIndex(make_lookup({1: Point(0, 0)}, calls))
    assert index.find_geometries(0, 0, float("nan")) == []
    assert calls == []
