from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerEntry(SQLModel, table=True):
    __tablename__ = "ledger_state"

    key: str = Field(primary_key=True, max_length=100)
    value: str = Field(default="[]", nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow)
