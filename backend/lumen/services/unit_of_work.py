# Overview: Scoped transaction shared by the orchestrators and the adjustment engine.

from __future__ import annotations

from sqlalchemy import text

from ..extensions import db


def lock_for_update(query, *, of=None):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; UnitOfWork takes the
    database write lock up front there instead.
    """
    if of is not None:
        return query.with_for_update(of=of)
    return query.with_for_update()


class UnitOfWork:
    """
    One database transaction, committed on clean exit and rolled back on any
    exception (which is then re-raised unchanged).

    An orchestrator opens the unit of work and hands it to every step that
    must share its transaction:

        with UnitOfWork() as uow:
            sale = ...
            apply_adjustment(..., uow=uow)

    No retries are attempted: a stock check that lost a race must be
    re-validated by the caller, not replayed blindly.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def __enter__(self) -> "UnitOfWork":
        if self.session.get_bind().dialect.name == "sqlite":
            # Serialize writers so read-check-write of quantity cannot interleave
            self.session.execute(text("BEGIN IMMEDIATE"))
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            try:
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise
        else:
            self.session.rollback()
        return False

    def lock(self, query, *, of=None):
        return lock_for_update(query, of=of)

    def flush(self) -> None:
        self.session.flush()
