"""Field access shared by the board modules.

The board accepts SQLAlchemy model instances, dataclasses and plain
mappings alike; every read goes through ``field``.
"""

from collections.abc import Mapping


def field(record, name: str, default=None):
    """Return ``record.name`` or ``record[name]``, else ``default``."""
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def project_id(project):
    return field(project, "id")


def project_ids(projects) -> list:
    return [field(p, "id") for p in projects]
