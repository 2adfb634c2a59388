from datetime import datetime

from sqlmodel import Field, SQLModel


class RefreshToken(SQLModel, table=True):
    """Issued refresh token, tracked by jti so it can be rotated and revoked.

    expires_at is stored as naive UTC (TIMESTAMP WITHOUT TIME ZONE); callers strip tzinfo.
    """

    __tablename__ = "refresh_tokens"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    jti: str = Field(unique=True, index=True)
    expires_at: datetime = Field(index=True)
    revoked: bool = False
