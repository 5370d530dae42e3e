import enum
import uuid
from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, Text, UniqueConstraint, BigInteger, Uuid
from uuid6 import uuid7
from datetime import datetime
from typing import List, Optional
from sqlmodel import Column, SQLModel, Field, String
from gamekeys.common.utils import now

class Role(str, enum.Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"

# user ids are the identity provider's opaque subject ids, there is no local users table
class UserRole(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(sa_column=Column(String(128), nullable=False, unique=True, index=True))
    role: str = Field(sa_column=Column(String(32), nullable=False))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))

class Profile(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(sa_column=Column(String(128), nullable=False, unique=True, index=True))
    email: Optional[str] = Field(default=None,sa_column=Column(String(320), nullable=True))
    display_name: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True))
    preferred_language: Optional[str] = Field(default=None, sa_column=Column(String(8), nullable=True))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

# ---------------------------------------------------------------------------------------------------------

class Game(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(
        default_factory=uuid7,
        sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False)
    )
    title: str = Field(sa_column=Column(String(255), nullable=False))
    title_ge: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    title_ru: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    description: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    description_ge: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    description_ru: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    price: int = Field(sa_column=Column(BigInteger, nullable=False))  # cents
    original_price: Optional[int] = Field(default=None, sa_column=Column(BigInteger, nullable=True))
    image_url: Optional[str] = Field(default=None, sa_column=Column(String(1024), nullable=True))
    category: Optional[str] = Field(default=None, sa_column=Column(String(64), nullable=True, index=True))
    platform: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False, default=list))
    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True, index=True))
    is_featured: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    rating: Optional[float] = Field(default=None, sa_column=Column(Float, nullable=True))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

class GameKey(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(
        default_factory=uuid7,
        sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False)
    )
    game_id: int = Field(sa_column=Column(Integer, ForeignKey("game.id", ondelete="CASCADE"), nullable=False))
    key_value: str = Field(sa_column=Column(String(255), nullable=False, unique=True))
    is_sold: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    sold_to: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True, index=True))
    sold_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))

    __table_args__ = (
        Index("ix_gamekey_game_id_is_sold", "game_id", "is_sold"),
    )

# --------------------------------------------------------------------------------------------

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

# one row per purchased unit, bound to exactly one key
class Orders(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(default_factory=uuid7, sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False))
    user_id: str = Field(sa_column=Column(String(128), nullable=False, index=True))
    game_id: Optional[int] = Field(default=None, sa_column=Column(Integer, ForeignKey("game.id", ondelete="SET NULL"), nullable=True, index=True))
    # unique: a key can be referenced by at most one order, ever
    game_key_id: Optional[int] = Field(default=None, sa_column=Column(Integer, ForeignKey("gamekey.id", ondelete="SET NULL"), nullable=True, unique=True))
    amount: int = Field(sa_column=Column(BigInteger, nullable=False))  # cents
    status: str = Field(default=OrderStatus.PENDING.value, sa_column=Column(String(16), nullable=False, index=True))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    updated_at: datetime = Field(default_factory=now,sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

# -----------------------------------------------------------------------------------------------------------------------

class IdempotencyKey(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    key: str = Field(sa_column=Column(String(128), nullable=False))
    created_by: str = Field(sa_column=Column(String(128), nullable=False))  # user id
    request_hash: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True))
    response_code: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    response_body: Optional[dict] = Field(default=None, sa_column=Column(JSON, nullable=True))

    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True, index=True))

    __table_args__ = (
        UniqueConstraint("created_by", "key", name="uq_idempotencykey_created_by_key"),
    )
