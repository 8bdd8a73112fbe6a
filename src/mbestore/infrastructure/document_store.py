"""SQLite-backed document store for organizations, projects, branches and their contents."""

import json
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..errors import DatabaseError, DataFormatError

COLLECTIONS = (
    "organizations",
    "projects",
    "users",
    "branches",
    "elements",
    "artifacts",
    "webhooks",
)

# (collection, field) pairs that get an expression index
INDEXED_FIELDS = (
    ("projects", "org"),
    ("branches", "project"),
    ("elements", "branch"),
    ("elements", "project"),
    ("artifacts", "branch"),
    ("webhooks", "reference"),
)

Query = Dict[str, Any]
SortSpec = Union[str, Sequence[Tuple[str, int]], None]


def _json_path(field: str) -> str:
    """Build a JSON path for a top-level or dotted field name."""
    if not field or '"' in field:
        raise DataFormatError(f"Invalid field name: [{field}]")
    return "$." + ".".join(f'"{part}"' for part in field.split("."))


def _field_expr(field: str) -> Tuple[str, Optional[str]]:
    """Return the SQL expression for a field and its bound JSON path, if any."""
    if field in ("_id", "id"):
        return "id", None
    return "json_extract(data, ?)", _json_path(field)


def _bindable(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        raise DataFormatError(f"Unsupported query value: [{value}]")
    return value


class DocumentStore:
    """Stores JSON documents keyed by ``_id`` in one table per collection.

    Every bulk write runs inside a single SQLite transaction, and every
    operation holds ``lock`` while it touches the connection, so threads sharing
    one store never interleave inside a transaction. Queries are
    dictionaries mapping a field (top-level or dotted path) to a value, ``None``
    (missing or null) or ``{"$in": [...]}``.
    """

    def __init__(
        self, db_path: Union[Path, str], lock: Optional[threading.RLock] = None
    ):
        """Open (and create if needed) the document store at ``db_path``.

        Args:
            db_path: SQLite file, or ``":memory:"``
            lock: Lock serializing access to the connection; pass one to share
                it with other holders of the same file
        """
        self.lock = lock or threading.RLock()
        self.db_path = db_path if db_path == ":memory:" else Path(db_path)
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn: Optional[sqlite3.Connection] = None
        self._connect()
        self._create_tables()

    def _connect(self):
        """Connect to the SQLite database."""
        self.conn = sqlite3.connect(
            str(self.db_path),
            check_same_thread=False,  # Shared across API worker threads
            timeout=30.0,
        )
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode = WAL")

    def _create_tables(self):
        """Create the collection tables and indexes if they don't exist."""
        with self.lock, self.conn:
            for collection in COLLECTIONS:
                self.conn.execute(f"""
                    CREATE TABLE IF NOT EXISTS {collection} (
                        id TEXT PRIMARY KEY,
                        data JSON NOT NULL
                    )
                """)
            for collection, field in INDEXED_FIELDS:
                self.conn.execute(f"""
                    CREATE INDEX IF NOT EXISTS idx_{collection}_{field}
                    ON {collection}(json_extract(data, '{_json_path(field)}'))
                """)

    def _table(self, collection: str) -> str:
        if collection not in COLLECTIONS:
            raise DatabaseError(f"Unknown collection [{collection}].")
        return collection

    def _build_where(self, query: Optional[Query]) -> Tuple[str, List[Any]]:
        """Translate a query dict into a WHERE clause and its parameters."""
        if not query:
            return "", []

        clauses: List[str] = []
        params: List[Any] = []
        for field, value in query.items():
            expr, path = _field_expr(field)
            field_params = [path] if path is not None else []

            if isinstance(value, dict):
                if set(value) != {"$in"} or not isinstance(value["$in"], (list, tuple)):
                    raise DataFormatError(f"Unsupported query operator for [{field}].")
                values = [_bindable(v) for v in value["$in"]]
                if not values:
                    clauses.append("0")
                    continue
                placeholders = ", ".join("?" for _ in values)
                clauses.append(f"{expr} IN ({placeholders})")
                params.extend(field_params + values)
            elif value is None:
                clauses.append(f"{expr} IS NULL")
                params.extend(field_params)
            else:
                clauses.append(f"{expr} = ?")
                params.extend(field_params + [_bindable(value)])

        return " WHERE " + " AND ".join(clauses), params

    def _build_order(self, sort: SortSpec) -> Tuple[str, List[Any]]:
        if not sort:
            return " ORDER BY rowid", []
        if isinstance(sort, str):
            sort = [(sort[1:], -1) if sort.startswith("-") else (sort, 1)]

        terms: List[str] = []
        params: List[Any] = []
        for field, direction in sort:
            expr, path = _field_expr(field)
            if path is not None:
                params.append(path)
            terms.append(f"{expr} {'DESC' if direction < 0 else 'ASC'}")
        return " ORDER BY " + ", ".join(terms) + ", rowid", params

    @staticmethod
    def _project(document: Dict[str, Any], fields: Optional[Sequence[str]]) -> Dict[str, Any]:
        """Apply a field projection; ``_id`` is always returned."""
        if not fields:
            return document
        excluded = {f[1:] for f in fields if f.startswith("-")}
        included = [f for f in fields if not f.startswith("-")]
        if included:
            document = {k: v for k, v in document.items() if k in included or k == "_id"}
        return {k: v for k, v in document.items() if k not in excluded or k == "_id"}

    def insert_many(self, collection: str, documents: Iterable[Dict[str, Any]]) -> int:
        """Insert documents in one transaction.

        Args:
            collection: Target collection
            documents: Documents carrying an ``_id``

        Returns:
            Number of inserted documents

        Raises:
            DatabaseError: If any ``_id`` already exists or the write fails
        """
        table = self._table(collection)
        rows = [(doc["_id"], json.dumps(doc)) for doc in documents]
        if not rows:
            return 0
        try:
            with self.lock, self.conn:
                cursor = self.conn.executemany(
                    f"INSERT INTO {table} (id, data) VALUES (?, ?)", rows
                )
        except sqlite3.IntegrityError as e:
            raise DatabaseError(f"Duplicate key in {collection}: {e}") from e
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to insert into {collection}: {e}") from e
        return cursor.rowcount

    def find(
        self,
        collection: str,
        query: Optional[Query] = None,
        fields: Optional[Sequence[str]] = None,
        limit: int = 0,
        skip: int = 0,
        sort: SortSpec = None,
    ) -> List[Dict[str, Any]]:
        """Find documents matching a query.

        Results come back in insertion order unless ``sort`` is given. A
        ``limit`` of 0 means unbounded.
        """
        table = self._table(collection)
        where, params = self._build_where(query)
        order, order_params = self._build_order(sort)
        sql = f"SELECT data FROM {table}{where}{order}"
        params = params + order_params
        if limit or skip:
            sql += " LIMIT ? OFFSET ?"
            params += [limit if limit else -1, skip]

        try:
            with self.lock:
                rows = self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to query {collection}: {e}") from e
        return [self._project(json.loads(row["data"]), fields) for row in rows]

    def find_one(
        self,
        collection: str,
        query: Query,
        fields: Optional[Sequence[str]] = None,
    ) -> Optional[Dict[str, Any]]:
        results = self.find(collection, query, fields=fields, limit=1)
        return results[0] if results else None

    def count(self, collection: str, query: Optional[Query] = None) -> int:
        table = self._table(collection)
        where, params = self._build_where(query)
        try:
            with self.lock:
                cursor = self.conn.execute(f"SELECT COUNT(*) FROM {table}{where}", params)
                return cursor.fetchone()[0]
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to count {collection}: {e}") from e

    def delete_many(self, collection: str, query: Query) -> int:
        """Delete every document matching ``query``; returns the deleted count."""
        table = self._table(collection)
        where, params = self._build_where(query)
        if not where:
            raise DatabaseError("Refusing to delete without a query.")
        try:
            with self.lock, self.conn:
                cursor = self.conn.execute(f"DELETE FROM {table}{where}", params)
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to delete from {collection}: {e}") from e
        return cursor.rowcount

    def bulk_update(
        self, collection: str, updates: Sequence[Tuple[str, Dict[str, Any]]]
    ) -> int:
        """Apply a list of ``(id, patch)`` pairs in one transaction.

        Each patch sets the given top-level keys; other keys are untouched.

        Returns:
            Number of modified documents
        """
        table = self._table(collection)
        modified = 0
        try:
            with self.lock, self.conn:
                for uid, patch in updates:
                    if not patch:
                        continue
                    assignments: List[str] = []
                    params: List[Any] = []
                    for key, value in patch.items():
                        assignments.append("?, json(?)")
                        params.extend([_json_path(key), json.dumps(value)])
                    cursor = self.conn.execute(
                        f"UPDATE {table} SET data = json_set(data, {', '.join(assignments)}) "
                        f"WHERE id = ?",
                        params + [uid],
                    )
                    modified += cursor.rowcount
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to update {collection}: {e}") from e
        return modified

    def populate(
        self, documents: List[Dict[str, Any]], references: Dict[str, str]
    ) -> List[Dict[str, Any]]:
        """Replace reference fields with the documents they point at.

        Args:
            documents: Documents to populate (modified in place)
            references: Field name to referenced collection

        Unresolvable references are left as IDs.
        """
        for field, collection in references.items():
            ids = sorted({doc[field] for doc in documents if isinstance(doc.get(field), str)})
            if not ids:
                continue
            found = {d["_id"]: d for d in self.find(collection, {"_id": {"$in": ids}})}
            for doc in documents:
                ref = doc.get(field)
                if isinstance(ref, str) and ref in found:
                    doc[field] = found[ref]
        return documents

    def close(self):
        """Close the database connection once no operation is using it."""
        with self.lock:
            if self.conn:
                self.conn.close()
                self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
