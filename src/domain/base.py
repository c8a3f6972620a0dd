"""Shared base for all persisted entities"""

import uuid
from sqlmodel import SQLModel


def generate_uuid() -> str:
    """Primary keys are random UUID strings"""
    return str(uuid.uuid4())


class BaseModel(SQLModel):
    pass
