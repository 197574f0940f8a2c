from __future__ import annotations

import asyncio
import json
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from billshare.db.models import Bill
from billshare.logging import get_logger, sql_logger
from billshare.services.bills import bill_participants, bill_total, validate_bill
from billshare.services.export import bill_from_dict, bill_to_dict

metadata = sa.MetaData()

kv_store = sa.Table(
    "kv_store",
    metadata,
    sa.Column("key", sa.Text(), primary_key=True),
    sa.Column("value", sa.Text(), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
)

BILL_PREFIX = "bill:"


def _create_engine(url: str) -> Engine:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return sa.create_engine(url)
    if parsed.database in (None, "", ":memory:"):
        # One shared connection, otherwise every worker thread sees its own empty database.
        return sa.create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return sa.create_engine(url, connect_args={"check_same_thread": False})


class Database:
    """Async facade over a local key-value table.

    SQLAlchemy calls are blocking, so each one runs in a worker thread.
    """

    def __init__(self, url: str) -> None:
        self._url = url
        self._engine: Engine | None = None
        self._log = get_logger(__name__)

    async def connect(self) -> None:
        if self._engine is None:
            self._engine = _create_engine(self._url)
            await asyncio.to_thread(metadata.create_all, self._engine)
            self._log.info("db.engine.created", url=self._url)

    async def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._log.info("db.engine.disposed")

    async def get(self, key: str) -> Any:
        engine = await self._ensure_engine()
        sql_logger.info("sql.get", key=key)
        return await asyncio.to_thread(self._get, engine, key)

    async def put(self, key: str, value: Any) -> None:
        engine = await self._ensure_engine()
        sql_logger.info("sql.put", key=key)
        await asyncio.to_thread(self._put, engine, key, value)

    async def delete(self, key: str) -> bool:
        engine = await self._ensure_engine()
        sql_logger.info("sql.delete", key=key)
        return await asyncio.to_thread(self._delete, engine, key)

    async def items(self, prefix: str = "") -> list[tuple[str, Any]]:
        engine = await self._ensure_engine()
        sql_logger.info("sql.items", prefix=prefix)
        return await asyncio.to_thread(self._items, engine, prefix)

    async def keys(self, prefix: str = "") -> list[str]:
        return [key for key, _ in await self.items(prefix)]

    async def _ensure_engine(self) -> Engine:
        if self._engine is None:
            await self.connect()
        assert self._engine
        return self._engine

    @staticmethod
    def _get(engine: Engine, key: str) -> Any:
        with engine.connect() as conn:
            raw = conn.execute(sa.select(kv_store.c.value).where(kv_store.c.key == key)).scalar_one_or_none()
        return json.loads(raw) if raw is not None else None

    @staticmethod
    def _put(engine: Engine, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        now = datetime.now(timezone.utc)
        with engine.begin() as conn:
            updated = conn.execute(
                kv_store.update().where(kv_store.c.key == key).values(value=payload, updated_at=now)
            ).rowcount
            if not updated:
                conn.execute(kv_store.insert().values(key=key, value=payload, updated_at=now))

    @staticmethod
    def _delete(engine: Engine, key: str) -> bool:
        with engine.begin() as conn:
            return conn.execute(kv_store.delete().where(kv_store.c.key == key)).rowcount > 0

    @staticmethod
    def _items(engine: Engine, prefix: str) -> list[tuple[str, Any]]:
        query = sa.select(kv_store.c.key, kv_store.c.value).order_by(kv_store.c.key)
        if prefix:
            query = query.where(kv_store.c.key.startswith(prefix, autoescape=True))
        with engine.connect() as conn:
            return [(key, json.loads(value)) for key, value in conn.execute(query)]


class BillRepository:
    def __init__(self, db: Database) -> None:
        self.db = db
        self._log = get_logger(__name__)

    async def save_bill(self, bill: Bill) -> Bill:
        validate_bill(bill)
        await self.db.put(BILL_PREFIX + bill.id, bill_to_dict(bill))
        self._log.info("bill.saved", bill_id=bill.id, entries=len(bill.entries))
        return bill

    async def get_bill(self, bill_id: str) -> Optional[Bill]:
        data = await self.db.get(BILL_PREFIX + bill_id)
        if data is not None:
            return bill_from_dict(data)
        # Short ids as shown in bill listings.
        matches = [bill for bill in await self.list_bills() if bill.id.startswith(bill_id)]
        return matches[0] if len(matches) == 1 else None

    async def list_bills(self) -> list[Bill]:
        bills = [bill_from_dict(data) for _, data in await self.db.items(BILL_PREFIX)]
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(bills, key=lambda bill: (bill.date, bill.created_at or epoch))

    async def delete_bill(self, bill_id: str) -> bool:
        deleted = await self.db.delete(BILL_PREFIX + bill_id)
        if deleted:
            self._log.info("bill.deleted", bill_id=bill_id)
        return deleted

    async def replace_all(self, bills: list[Bill]) -> int:
        for key in await self.db.keys(BILL_PREFIX):
            await self.db.delete(key)
        for bill in bills:
            await self.db.put(BILL_PREFIX + bill.id, bill_to_dict(bill))
        self._log.info("bill.replaced_all", count=len(bills))
        return len(bills)

    async def bills_by_category(self, category: str) -> list[Bill]:
        return [bill for bill in await self.list_bills() if bill.category == category]

    async def bills_by_date_range(self, start: date, end: date) -> list[Bill]:
        return [bill for bill in await self.list_bills() if start <= bill.date <= end]

    async def bills_by_participant(self, code: str) -> list[Bill]:
        return [bill for bill in await self.list_bills() if code in bill_participants(bill)]

    async def recent_bills(self, days: int = 7, limit: int = 10) -> list[Bill]:
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        recent = [bill for bill in await self.list_bills() if bill.created_at and bill.created_at > cutoff]
        recent.sort(key=lambda bill: bill.created_at, reverse=True)
        return recent[:limit]

    async def storage_stats(self) -> dict[str, Any]:
        bills = await self.list_bills()
        modified = [bill.updated_at or bill.created_at for bill in bills if bill.updated_at or bill.created_at]
        return {
            "bill_count": len(bills),
            "total_cents": sum(bill_total(bill) for bill in bills),
            "last_modified": max(modified) if modified else None,
        }


_global_repo: BillRepository | None = None


def set_global_repository(repo: BillRepository) -> None:
    global _global_repo
    _global_repo = repo


def get_global_repository() -> BillRepository:
    if _global_repo is None:
        raise RuntimeError("Repository is not initialised")
    return _global_repo
