"""Read-only DuckDB access to a pre-built geocoding database."""
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import duckdb

from revgeo.core.errors import StoreAccessError

# Columns of ``entities`` referencing ``names``
NAME_FIELDS = (
    "country",
    "region",
    "county",
    "locality",
    "neighbourhood",
    "street",
    "postcode",
    "name",
)


class GeocodingStore:
    """
    Read-only view of a geocoding database.
    
    Expected schema::
    
        metadata(name VARCHAR, value VARCHAR)
        entities(id INTEGER, quadindex BIGINT, type INTEGER, features BLOB,
                 housenumbers VARCHAR, country_id INTEGER, region_id INTEGER,
                 county_id INTEGER, locality_id INTEGER, neighbourhood_id INTEGER,
                 street_id INTEGER, postcode_id INTEGER, name_id INTEGER)
        names(id INTEGER, lang VARCHAR, name VARCHAR)
    
    A ``names`` row with an empty ``lang`` is the default text of a name.
    """
    
    def __init__(self, db_path: Path, read_only: bool = True):
        """
        Open a database file.
        
        Args:
            db_path: Path to the DuckDB database file
            read_only: Open the file without write access
        """
        self.db_path = Path(db_path)
        try:
            self.conn = duckdb.connect(str(self.db_path), read_only=read_only)
        except duckdb.Error as e:
            raise StoreAccessError(f"Cannot open geocoding database {self.db_path}") from e
    
    @classmethod
    def from_connection(cls, conn: duckdb.DuckDBPyConnection) -> "GeocodingStore":
        """Wrap an already open connection; the caller keeps ownership of it."""
        store = cls.__new__(cls)
        store.db_path = None
        store.conn = conn
        return store
    
    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[tuple]:
        """Run a query and fetch all rows."""
        try:
            if params is None:
                return self.conn.execute(sql).fetchall()
            return self.conn.execute(sql, params).fetchall()
        except duckdb.Error as e:
            raise StoreAccessError(f"Query failed: {sql}") from e
    
    def get_metadata(self, name: str) -> Optional[str]:
        """Get a metadata value by name."""
        rows = self.execute("SELECT value FROM metadata WHERE name = ?", [name])
        if rows:
            return rows[0][0]
        return None
    
    def get_entity(self, row_id: int) -> Optional[Dict[str, Any]]:
        """Get a full entity row."""
        columns = ["id", "type", "features", "housenumbers"] + [f"{f}_id" for f in NAME_FIELDS]
        rows = self.execute(
            f"SELECT {', '.join(columns)} FROM entities WHERE id = ?",
            [row_id]
        )
        if rows:
            return dict(zip(columns, rows[0]))
        return None
    
    def get_names(self, name_ids: Iterable[Optional[int]], language: str) -> Dict[int, str]:
        """
        Resolve name ids into text.
        
        Args:
            name_ids: Name ids to resolve (None entries are ignored)
            language: Preferred language; falls back to the default text
            
        Returns:
            Dictionary mapping name id to text
        """
        ids = sorted({i for i in name_ids if i is not None})
        if not ids:
            return {}
        
        placeholders = ",".join("?" for _ in ids)
        rows = self.execute(
            f"SELECT id, lang, name FROM names WHERE id IN ({placeholders}) AND lang IN ('', ?)",
            ids + [language]
        )
        names = {}
        for name_id, lang, text in rows:
            if lang == language or name_id not in names:
                names[name_id] = text
        return names
    
    def close(self):
        """Close database connection."""
        self.conn.close()
