from datetime import UTC, datetime

import sqlalchemy as sa
from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel


class Entity(BaseModel):
    """Base entity whose identifier is assigned by the primary store.

    A freshly submitted entity carries no ``id``; the store fills it in on
    first save and it never changes afterwards.
    """

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int | None = PydanticField(
        default=None,
        description="Identifier assigned by the primary store",
    )


class EntityTable(SQLModel, table=False):
    """Base table with an auto-increment integer key and audit timestamps."""

    id: int | None = Field(
        default=None,
        primary_key=True,
        description="Identifier assigned by the database",
    )

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        nullable=False,
        sa_column_kwargs={
            "server_default": sa.func.now(),
            "onupdate": sa.func.now(),
        },
    )
