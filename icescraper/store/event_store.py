# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Event Store - Day / session / snapshot persistence on SQLite

All writes of a pass happen on the connection handed out by
EventStore.transaction(); if anything raises inside it, the whole pass is
rolled back. Handles are thin views bound to that connection and must not
outlive it.
"""
import json
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from sqlalchemy import create_engine, func, insert, select, update
from sqlalchemy.engine import Connection, Engine

from icescraper.errors import StoreDecodeError
from icescraper.models import ProductId, Snapshot
from icescraper.store.schema import days, metadata, sessions, snapshots

logger = logging.getLogger(__name__)


def encode_products(products: List[ProductId]) -> str:
    return json.dumps(list(products), separators=(',', ':'))


class SessionHandle:
    """The ordered snapshot history of one session"""

    def __init__(self, conn: Connection, day: str, session_id: str):
        self.conn = conn
        self.day = day
        self.session_id = session_id

    def __repr__(self):
        return f"SessionHandle({self.day!r}, {self.session_id!r})"

    def _where(self, stmt):
        return stmt.where(snapshots.c.date == self.day, snapshots.c.session_id == self.session_id)

    def _decode(self, seq: int, payload: str) -> Snapshot:
        try:
            return Snapshot.from_json(payload)
        except (ValueError, KeyError, TypeError) as e:
            raise StoreDecodeError(
                f"Can't parse snapshot {self.day}/{self.session_id}/{seq}: {e}"
            ) from e

    def latest(self) -> Optional[Snapshot]:
        """Most recent snapshot, or None if nothing has been recorded yet"""
        stmt = self._where(select(snapshots.c.seq, snapshots.c.payload))
        row = self.conn.execute(stmt.order_by(snapshots.c.seq.desc()).limit(1)).first()
        if row is None:
            return None
        return self._decode(row.seq, row.payload)

    def append(self, snapshot: Snapshot) -> int:
        """Store a snapshot under the next sequence number and return it"""
        last = self.conn.execute(self._where(select(func.max(snapshots.c.seq)))).scalar()
        seq = (last or 0) + 1
        self.conn.execute(insert(snapshots).values(
            date=self.day,
            session_id=self.session_id,
            seq=seq,
            payload=snapshot.to_json(),
        ))
        return seq

    def history(self) -> List[Tuple[int, Snapshot]]:
        """All snapshots in sequence order"""
        stmt = self._where(select(snapshots.c.seq, snapshots.c.payload)).order_by(snapshots.c.seq)
        return [(row.seq, self._decode(row.seq, row.payload)) for row in self.conn.execute(stmt)]

    def raw_history(self) -> List[Tuple[int, str]]:
        stmt = self._where(select(snapshots.c.seq, snapshots.c.payload)).order_by(snapshots.c.seq)
        return [(row.seq, row.payload) for row in self.conn.execute(stmt)]


class EventsHandle:
    """The events scope of a day: one entry per session id"""

    def __init__(self, conn: Connection, day: str):
        self.conn = conn
        self.day = day

    def session_ids(self) -> List[str]:
        """Known session ids in ascending key order"""
        stmt = (
            select(sessions.c.session_id)
            .where(sessions.c.date == self.day)
            .order_by(sessions.c.session_id)
        )
        return list(self.conn.execute(stmt).scalars())

    def sessions(self) -> Iterator[SessionHandle]:
        for session_id in self.session_ids():
            yield SessionHandle(self.conn, self.day, session_id)

    def get_session(self, session_id: str) -> Optional[SessionHandle]:
        stmt = select(sessions.c.session_id).where(
            sessions.c.date == self.day, sessions.c.session_id == session_id
        )
        if self.conn.execute(stmt).first() is None:
            return None
        return SessionHandle(self.conn, self.day, session_id)

    def session(self, session_id: str) -> SessionHandle:
        """Get the session scope, creating it on first sight"""
        handle = self.get_session(session_id)
        if handle is None:
            self.conn.execute(insert(sessions).values(date=self.day, session_id=session_id))
            handle = SessionHandle(self.conn, self.day, session_id)
        return handle


class DayHandle:
    """One day bucket: its product list and its events scope"""

    def __init__(self, conn: Connection, day: str):
        self.conn = conn
        self.day = day

    def __repr__(self):
        return f"DayHandle({self.day!r})"

    def raw_products(self) -> Optional[str]:
        return self.conn.execute(select(days.c.products).where(days.c.date == self.day)).scalar()

    def products(self) -> List[ProductId]:
        """Products known to have events on this day, in stored order"""
        raw = self.raw_products()
        if raw is None:
            return []
        try:
            products = json.loads(raw)
        except ValueError as e:
            raise StoreDecodeError(f"Can't parse products {{{raw}}} for {self.day}: {e}") from e
        if not isinstance(products, list) or not all(isinstance(p, str) for p in products):
            raise StoreDecodeError(f"Can't parse products {{{raw}}} for {self.day}: not a list of ids")

        # Ordered set: the first occurrence wins
        return list(dict.fromkeys(products))

    def set_products(self, products: List[ProductId]) -> bool:
        """
        Replace the stored products list if its serialized length changed.

        Only the length is compared, so the list does not need to be sorted.
        A same-length change (e.g. one id swapped for another of equal size)
        is not detected.
        """
        encoded = encode_products(products)
        current = self.raw_products() or ""
        if len(current) == len(encoded):
            return False
        self.conn.execute(update(days).where(days.c.date == self.day).values(products=encoded))
        return True

    def events(self) -> EventsHandle:
        return EventsHandle(self.conn, self.day)


class EventStore:
    """Entry point to the store: transactions and day lookups"""

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def open(cls, path: str) -> "EventStore":
        """Open (creating if needed) the SQLite store at path"""
        engine = create_engine(f"sqlite:///{path}", future=True)
        metadata.create_all(engine)
        logger.debug(f"Opened event store at {path}")
        return cls(engine)

    def close(self):
        self.engine.dispose()

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """The single writer transaction of a pass: commit all or nothing"""
        with self.engine.begin() as conn:
            yield conn

    @contextmanager
    def reader(self) -> Iterator[Connection]:
        """A connection for read-only views"""
        with self.engine.connect() as conn:
            yield conn

    def ensure_day(self, conn: Connection, day: str) -> Tuple[DayHandle, bool]:
        """Get the day bucket, creating it if needed; returns (handle, created)"""
        if self.get_day(conn, day) is not None:
            return DayHandle(conn, day), False
        conn.execute(insert(days).values(date=day))
        return DayHandle(conn, day), True

    def get_day(self, conn: Connection, day: str) -> Optional[DayHandle]:
        row = conn.execute(select(days.c.date).where(days.c.date == day)).first()
        return DayHandle(conn, day) if row is not None else None

    def days_from(self, conn: Connection, start: str) -> Iterator[DayHandle]:
        """
        Lazily walk the day buckets from start onwards, in date order.

        Keys are zero-padded YYYY-MM-DD strings, so lexicographic order is
        chronological. Each step seeks past the previous key, so writes made
        while iterating are safe.
        """
        key = conn.execute(
            select(days.c.date).where(days.c.date >= start).order_by(days.c.date).limit(1)
        ).scalar()
        while key is not None:
            yield DayHandle(conn, key)
            key = conn.execute(
                select(days.c.date).where(days.c.date > key).order_by(days.c.date).limit(1)
            ).scalar()

    def all_days(self, conn: Connection) -> Iterator[DayHandle]:
        return self.days_from(conn, "")
