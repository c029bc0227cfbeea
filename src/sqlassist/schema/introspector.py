"""Schema snapshot capture.

Reads a live database through the SQLAlchemy inspector and turns it into an
immutable, vendor-neutral SchemaSnapshot. Only catalog reads are issued.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect
from sqlalchemy.exc import CompileError, SQLAlchemyError

from sqlassist.core.connection import vendor_error_code
from sqlassist.core.types import (
    ColumnInfo,
    ForeignKeyInfo,
    IndexInfo,
    ReferentialAction,
    SchemaSnapshot,
    TableInfo,
    ViewInfo,
)
from sqlassist.exceptions import ConnectivityError

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine.reflection import Inspector
    from sqlalchemy.types import TypeEngine

    from sqlassist.core.connection import DatabaseConnection

logger = logging.getLogger(__name__)

# (catalog term, schema term) as vendors name them
CATALOG_TERMS = {
    "postgresql": ("database", "schema"),
    "mysql": ("database", ""),
    "sqlite": ("catalog", "schema"),
}


def normalize_type_name(col_type: TypeEngine[Any]) -> str:
    """Normalized type name, e.g. VARCHAR for VARCHAR(120)."""
    visit_name = getattr(col_type, "__visit_name__", None)
    if isinstance(visit_name, str) and visit_name:
        return visit_name.upper()
    return type(col_type).__name__.upper()


def _render_type(col_type: TypeEngine[Any], inspector: Inspector) -> str:
    try:
        return col_type.compile(dialect=inspector.dialect)
    except CompileError:
        # NullType and other types without DDL
        return normalize_type_name(col_type)


def _int_attr(col_type: TypeEngine[Any], name: str) -> int | None:
    value = getattr(col_type, name, None)
    return value if isinstance(value, int) and not isinstance(value, bool) else None


def _collapse_index_rows(rows: list[tuple[str, str, bool, str | None]]) -> list[IndexInfo]:
    """Group (index, column, unique, type) rows by index name.

    Columns keep the order in which they were first reported.
    """
    grouped: dict[str, dict[str, Any]] = {}
    for index_name, column_name, is_unique, index_type in rows:
        entry = grouped.setdefault(
            index_name, {"columns": [], "unique": is_unique, "type": index_type}
        )
        if column_name not in entry["columns"]:
            entry["columns"].append(column_name)
        entry["unique"] = entry["unique"] or is_unique
        entry["type"] = entry["type"] or index_type

    return [
        IndexInfo(
            name=name,
            is_unique=entry["unique"],
            columns=entry["columns"],
            index_type=entry["type"],
        )
        for name, entry in grouped.items()
    ]


class SchemaSnapshotBuilder:
    """Builds a SchemaSnapshot from a live connection.

    Tables and views are enumerated separately. For each of them the columns,
    primary key, indexes and foreign keys are read over one connection, which
    is released on every exit path.
    """

    def __init__(self, schema: str | None = None) -> None:
        """Initialize the builder.

        Args:
            schema: Schema to introspect (None = the connection's default)
        """
        self._schema = schema

    def build(self, connection: DatabaseConnection) -> SchemaSnapshot:
        """Capture the schema of the target database.

        Args:
            connection: Connection to the target database

        Returns:
            Immutable SchemaSnapshot

        Raises:
            ConnectivityError: If the database cannot be opened or introspected
        """
        try:
            with connection.connect() as conn:
                inspector = inspect(conn)
                tables = [
                    self._build_table(inspector, name)
                    for name in inspector.get_table_names(schema=self._schema)
                ]
                views = [
                    self._build_view(inspector, name)
                    for name in inspector.get_view_names(schema=self._schema)
                ]
                database_name = self._database_name(conn)
                metadata = self._driver_metadata(conn)
        except SQLAlchemyError as e:
            raise ConnectivityError(
                f"Failed to introspect database schema: {e}",
                vendor_code=vendor_error_code(e),
            ) from e

        logger.info(
            f"Captured schema for {database_name}: {len(tables)} tables, {len(views)} views"
        )
        return SchemaSnapshot(
            database_name=database_name,
            tables=tables,
            views=views,
            metadata=metadata,
        )

    def _build_table(self, inspector: Inspector, table_name: str) -> TableInfo:
        primary_keys = self._primary_keys(inspector, table_name)
        return TableInfo(
            name=table_name,
            schema_name=self._schema or inspector.default_schema_name,
            table_type="TABLE",
            columns=self._build_columns(inspector, table_name, primary_keys),
            indexes=self._build_indexes(inspector, table_name),
            foreign_keys=self._build_foreign_keys(inspector, table_name),
            comment=self._table_comment(inspector, table_name),
        )

    def _build_view(self, inspector: Inspector, view_name: str) -> ViewInfo:
        try:
            definition = inspector.get_view_definition(view_name, schema=self._schema)
        except NotImplementedError:
            definition = None

        return ViewInfo(
            name=view_name,
            schema_name=self._schema or inspector.default_schema_name,
            definition=definition,
            columns=self._build_columns(inspector, view_name, set()),
            comment=self._table_comment(inspector, view_name),
        )

    def _primary_keys(self, inspector: Inspector, table_name: str) -> list[str]:
        constraint = inspector.get_pk_constraint(table_name, schema=self._schema) or {}
        return list(constraint.get("constrained_columns") or [])

    def _build_columns(
        self, inspector: Inspector, table_name: str, primary_keys: list[str] | set[str]
    ) -> list[ColumnInfo]:
        """Materialize columns; the primary-key flag comes only from the PK set."""
        pk_set = set(primary_keys)
        reflected = inspector.get_columns(table_name, schema=self._schema)

        # SQLite: a lone INTEGER PRIMARY KEY aliases the rowid
        rowid_alias = None
        if inspector.dialect.name == "sqlite" and len(pk_set) == 1:
            (only_pk,) = pk_set
            for col in reflected:
                if col["name"] == only_pk and normalize_type_name(col["type"]) == "INTEGER":
                    rowid_alias = only_pk

        columns = []
        for col in reflected:
            col_type = col["type"]
            default = col.get("default")
            column_size = _int_attr(col_type, "length")
            precision = _int_attr(col_type, "precision")
            columns.append(
                ColumnInfo(
                    name=col["name"],
                    data_type=_render_type(col_type, inspector),
                    column_type=normalize_type_name(col_type),
                    nullable=bool(col.get("nullable", True)),
                    is_primary_key=col["name"] in pk_set,
                    is_auto_increment=self._is_auto_increment(col, rowid_alias),
                    default_value=None if default is None else str(default),
                    column_size=column_size if column_size is not None else precision,
                    precision=precision,
                    scale=_int_attr(col_type, "scale"),
                    comment=col.get("comment"),
                )
            )
        return columns

    @staticmethod
    def _is_auto_increment(col: dict[str, Any], rowid_alias: str | None) -> bool:
        if col.get("autoincrement") is True or col.get("identity"):
            return True
        default = col.get("default")
        if default is not None and "nextval(" in str(default).lower():
            return True
        return col["name"] == rowid_alias

    def _build_indexes(self, inspector: Inspector, table_name: str) -> list[IndexInfo]:
        rows: list[tuple[str, str, bool, str | None]] = []

        for index in inspector.get_indexes(table_name, schema=self._schema):
            if not index.get("name"):
                continue
            options = index.get("dialect_options") or {}
            index_type = next(
                (str(value) for key, value in options.items() if key.endswith("_using")), None
            )
            for column_name in index.get("column_names") or []:
                if column_name is None:  # expression index member
                    continue
                rows.append((index["name"], column_name, bool(index.get("unique")), index_type))

        try:
            unique_constraints = inspector.get_unique_constraints(table_name, schema=self._schema)
        except NotImplementedError:
            unique_constraints = []
        for constraint in unique_constraints:
            if not constraint.get("name"):
                continue
            for column_name in constraint.get("column_names") or []:
                rows.append((constraint["name"], column_name, True, None))

        return _collapse_index_rows(rows)

    def _build_foreign_keys(self, inspector: Inspector, table_name: str) -> list[ForeignKeyInfo]:
        """One entry per (local column, referenced column) pair."""
        foreign_keys = []
        for fk in inspector.get_foreign_keys(table_name, schema=self._schema):
            options = fk.get("options") or {}
            on_update = ReferentialAction.from_vendor(options.get("onupdate"))
            on_delete = ReferentialAction.from_vendor(options.get("ondelete"))
            for column_name, referenced_column in zip(
                fk.get("constrained_columns") or [], fk.get("referred_columns") or [], strict=False
            ):
                foreign_keys.append(
                    ForeignKeyInfo(
                        name=fk.get("name"),
                        column_name=column_name,
                        referenced_table=fk["referred_table"],
                        referenced_column=referenced_column,
                        on_update=on_update,
                        on_delete=on_delete,
                    )
                )
        return foreign_keys

    def _table_comment(self, inspector: Inspector, name: str) -> str | None:
        if not inspector.dialect.supports_comments:
            return None
        try:
            return inspector.get_table_comment(name, schema=self._schema).get("text")
        except NotImplementedError:
            return None

    def _database_name(self, conn: Connection) -> str | None:
        database = conn.engine.url.database
        if conn.dialect.name == "sqlite" and database:
            return Path(database).name
        return database

    def _driver_metadata(self, conn: Connection) -> dict[str, Any]:
        dialect = conn.dialect
        version_info = dialect.server_version_info or ()
        dbapi = dialect.dbapi
        driver_version = getattr(dbapi, "__version__", None) or getattr(
            dbapi, "sqlite_version", None
        )
        catalog_term, schema_term = CATALOG_TERMS.get(dialect.name, ("catalog", "schema"))
        return {
            "databaseProductName": dialect.name,
            "databaseProductVersion": ".".join(str(part) for part in version_info),
            "driverName": dialect.driver,
            "driverVersion": str(driver_version) if driver_version else "",
            "catalogTerm": catalog_term,
            "schemaTerm": schema_term,
        }


def build_schema_snapshot(
    connection: DatabaseConnection, schema: str | None = None
) -> SchemaSnapshot:
    """Convenience function to capture a schema snapshot.

    Args:
        connection: Connection to the target database
        schema: Optional schema to introspect

    Returns:
        SchemaSnapshot
    """
    return SchemaSnapshotBuilder(schema=schema).build(connection)
