"""Transaction stores the persistence bridge writes into.

Every store must enforce uniqueness of ``(owner_id, dedupe_key)`` so that the
existence check followed by an insert stays correct when inserts race.
"""

import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, Float, String, Text, UniqueConstraint, create_engine, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import DuplicateKeyError, StoreError


class TransactionStore(ABC):
    @abstractmethod
    def find_by_dedupe_key(self, owner_id: str, dedupe_key: str) -> Optional[Dict[str, Any]]:
        """Returns the stored record carrying this key for the owner, if any."""
        ...

    @abstractmethod
    def insert(self, owner_id: str, record: Dict[str, Any]) -> str:
        """Inserts a record and returns its id. Raises DuplicateKeyError on a key clash."""
        ...

    @abstractmethod
    def list_transactions(self, owner_id: str) -> List[Dict[str, Any]]:
        """Returns the owner's records, newest first."""
        ...

    @abstractmethod
    def delete(self, transaction_id: str) -> bool:
        ...


class InMemoryTransactionStore(TransactionStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._records: Dict[str, Dict[str, Any]] = {}
        self._keys: Dict[tuple, str] = {}
        self._sequence = 0

    def find_by_dedupe_key(self, owner_id: str, dedupe_key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record_id = self._keys.get((owner_id, dedupe_key))
            return dict(self._records[record_id]) if record_id else None

    def insert(self, owner_id: str, record: Dict[str, Any]) -> str:
        key = (owner_id, record["dedupe_key"])
        with self._lock:
            if key in self._keys:
                raise DuplicateKeyError(f"dedupe key already stored for owner {owner_id}")
            record_id = record.get("id") or uuid.uuid4().hex
            self._sequence += 1
            self._records[record_id] = {
                **record,
                "id": record_id,
                "owner_id": owner_id,
                "created_at": datetime.now(timezone.utc),
                "_sequence": self._sequence,
            }
            self._keys[key] = record_id
            return record_id

    def list_transactions(self, owner_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            rows = [r for r in self._records.values() if r["owner_id"] == owner_id]
        rows.sort(key=lambda r: r["_sequence"], reverse=True)
        return [{k: v for k, v in r.items() if k != "_sequence"} for r in rows]

    def delete(self, transaction_id: str) -> bool:
        with self._lock:
            record = self._records.pop(transaction_id, None)
            if record is None:
                return False
            self._keys.pop((record["owner_id"], record["dedupe_key"]), None)
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class Base(DeclarativeBase):
    pass


class SmsTransactionRow(Base):
    """A transaction recognised from an SMS, keyed for deduplication."""

    __tablename__ = "sms_transactions"
    __table_args__ = (
        UniqueConstraint("owner_id", "dedupe_key", name="uq_sms_transactions_owner_dedupe"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    dedupe_key: Mapped[str] = mapped_column(String(512), nullable=False, index=True)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="other")
    merchant: Mapped[str] = mapped_column(String(64), nullable=False, default="Unknown")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    date: Mapped[str] = mapped_column(String(10), nullable=False, comment="ISO transaction date")
    timestamp: Mapped[str] = mapped_column(String(40), nullable=False, comment="SMS receive time")
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="INR")
    bank: Mapped[str] = mapped_column(String(64), nullable=False, default="Unknown")
    account_tail: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    channel: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    reference: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    sender: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    def to_dict(self) -> Dict[str, Any]:
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}

    def __repr__(self) -> str:
        return f"<SmsTransactionRow(owner='{self.owner_id}', amount={self.amount}, merchant='{self.merchant}')>"


class SqlTransactionStore(TransactionStore):
    def __init__(self, database_url: str = "sqlite://"):
        engine_kwargs: Dict[str, Any] = {}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool
        try:
            self.engine = create_engine(database_url, **engine_kwargs)
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StoreError(f"could not open {database_url}: {e}") from e
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def find_by_dedupe_key(self, owner_id: str, dedupe_key: str) -> Optional[Dict[str, Any]]:
        stmt = select(SmsTransactionRow).where(
            SmsTransactionRow.owner_id == owner_id,
            SmsTransactionRow.dedupe_key == dedupe_key,
        )
        try:
            with self._session_factory() as session:
                row = session.execute(stmt).scalar_one_or_none()
                return row.to_dict() if row else None
        except SQLAlchemyError as e:
            raise StoreError(f"lookup failed: {e}") from e

    def insert(self, owner_id: str, record: Dict[str, Any]) -> str:
        columns = {c.name for c in SmsTransactionRow.__table__.columns}
        values = {k: v for k, v in record.items() if k in columns and v is not None}
        values["id"] = record.get("id") or uuid.uuid4().hex
        values["owner_id"] = owner_id
        row = SmsTransactionRow(**values)
        try:
            with self._session_factory() as session:
                session.add(row)
                session.commit()
        except IntegrityError as e:
            if self.find_by_dedupe_key(owner_id, record["dedupe_key"]) is not None:
                raise DuplicateKeyError(f"dedupe key already stored for owner {owner_id}") from e
            raise StoreError(f"insert rejected: {e}") from e
        except SQLAlchemyError as e:
            raise StoreError(f"insert failed: {e}") from e
        return values["id"]

    def list_transactions(self, owner_id: str) -> List[Dict[str, Any]]:
        stmt = (
            select(SmsTransactionRow)
            .where(SmsTransactionRow.owner_id == owner_id)
            .order_by(SmsTransactionRow.created_at.desc(), SmsTransactionRow.id.desc())
        )
        try:
            with self._session_factory() as session:
                return [row.to_dict() for row in session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            raise StoreError(f"listing failed: {e}") from e

    def delete(self, transaction_id: str) -> bool:
        try:
            with self._session_factory() as session:
                row = session.get(SmsTransactionRow, transaction_id)
                if row is None:
                    return False
                session.delete(row)
                session.commit()
                return True
        except SQLAlchemyError as e:
            raise StoreError(f"delete failed: {e}") from e
