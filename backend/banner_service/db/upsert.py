from typing import Any, Iterable

from sqlalchemy.orm import Session

from banner_service.core.errors import StorageError


def upsert(db: Session, model, values: dict[str, Any], conflict_columns: Iterable[str], update: dict[str, Any] | None):
    """Insert a row or, when the unique key already exists, apply ``update`` in the same statement.

    ``update=None`` means insert-if-absent (existing row left untouched).
    Returns the CursorResult; the caller owns the transaction.
    """
    dialect = db.get_bind().dialect.name
    if dialect in ("mysql", "mariadb"):
        from sqlalchemy.dialects.mysql import insert as mysql_insert
        stmt = mysql_insert(model).values(**values)
        if update is None:
            # MySQL has no DO NOTHING; a self-assignment keeps the row as is
            first = next(iter(conflict_columns))
            stmt = stmt.on_duplicate_key_update({first: stmt.inserted[first]})
        else:
            stmt = stmt.on_duplicate_key_update(update)
        return db.execute(stmt)

    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise StorageError(f"Upsert is not supported on dialect '{dialect}'")

    stmt = insert(model).values(**values)
    if update is None:
        stmt = stmt.on_conflict_do_nothing(index_elements=list(conflict_columns))
    else:
        stmt = stmt.on_conflict_do_update(index_elements=list(conflict_columns), set_=update)
    return db.execute(stmt)
