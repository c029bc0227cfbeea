"""Schema capture for SQLAssist."""

from sqlassist.schema.introspector import SchemaSnapshotBuilder, build_schema_snapshot

__all__ = [
    "SchemaSnapshotBuilder",
    "build_schema_snapshot",
]
