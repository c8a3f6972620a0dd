"""Project Domain Entity

Work is recorded against projects; a project belongs to one customer.
"""

from datetime import datetime
from sqlmodel import Field, Column
from sqlalchemy import String
from src.domain.base import BaseModel, generate_uuid


class Project(BaseModel, table=True):
    __tablename__ = "projects"

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique project identifier (UUID)"
    )

    customer_id: str = Field(
        index=True,
        description="Owning customer"
    )

    name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Project name"
    )

    status: str = Field(
        default="active",
        sa_column=Column(String(50), nullable=False, default="active"),
        description="Project status (active, completed, ...)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Project creation timestamp"
    )
