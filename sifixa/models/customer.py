from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Customer(SQLModel, table=True):
    __tablename__ = "customers"
    id: int | None = Field(default=None, primary_key=True)
    first_name: str
    last_name: str | None = None
    email: str | None = Field(default=None, unique=True, index=True)
    phone: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()


class Device(SQLModel, table=True):
    __tablename__ = "devices"
    id: int | None = Field(default=None, primary_key=True)
    customer_id: int = Field(foreign_key="customers.id", index=True)
    device_type: str = "phone"
    brand: str | None = None
    model: str | None = None
    color: str | None = None
    serial_number: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now)

    @property
    def display_name(self) -> str:
        return f"{self.brand or ''} {self.model or ''}".strip() or "Unknown Device"
