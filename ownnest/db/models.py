"""SQLAlchemy ORM models."""
import uuid

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from ownnest.infrastructure.database.base import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Design(Base):
    __tablename__ = "designs"

    # Autoincrement id doubles as insertion order for listing.
    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(64), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    color = Column(String(100), nullable=False)
    fabric = Column(String(100), nullable=False)
    buttons = Column(String(100), nullable=False)
    image_url = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class TokenizationJob(Base):
    __tablename__ = "tokenization_jobs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    owner_id = Column(String(64), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="persisting")
    design_count = Column(Integer, nullable=False, default=0)
    payload_sha256 = Column(String(64))
    account_address = Column(String(64))
    program_id = Column(String(64))
    signature = Column(String(128))
    error_kind = Column(String(32))
    error_message = Column(Text)
    attempts = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
