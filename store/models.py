import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def new_id():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class SourceModel(Base):
    __tablename__ = "sources"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(120), nullable=False, unique=True)
    type = Column(String(32), nullable=False)
    identifier = Column(String(300), nullable=False)
    provider_label = Column(String(120), nullable=False)
    tier = Column(Integer, nullable=False, default=2)
    enabled = Column(Boolean, nullable=False, default=True)

    last_fetched_at_utc = Column(DateTime(timezone=True), nullable=True)
    last_error = Column(String(500), nullable=True)
    created_at_utc = Column(DateTime(timezone=True), default=utcnow)


class EditionModel(Base):
    __tablename__ = "editions"

    id = Column(String(36), primary_key=True, default=new_id)
    date = Column(String(10), nullable=False, unique=True)
    generated_at_utc = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    total_count = Column(Integer, nullable=False, default=0)
    hot_count = Column(Integer, nullable=False, default=0)
    notable_count = Column(Integer, nullable=False, default=0)
    quiet_count = Column(Integer, nullable=False, default=0)
    morning_note = Column(Text, nullable=False, default="")

    signals = relationship("SignalModel", back_populates="edition", cascade="all, delete-orphan")


class SignalModel(Base):
    __tablename__ = "signals"

    id = Column(String(36), primary_key=True, default=new_id)
    edition_id = Column(String(36), ForeignKey("editions.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(220), nullable=False)
    summary = Column(String(240), nullable=False)
    rationale = Column(String(420), nullable=False)
    provider_key = Column(String(80), nullable=False)
    provider_label = Column(String(120), nullable=False)
    track_key = Column(String(40), nullable=False)
    track_label = Column(String(80), nullable=False)
    heat = Column(String(10), nullable=False)
    stream_key = Column(String(20), nullable=False)
    stream_label = Column(String(80), nullable=False)
    rank = Column(Integer, nullable=True)
    source_url = Column(Text, nullable=False)
    source_domain = Column(String(255), nullable=False)

    # JSON list of http(s) URLs, source_url first
    citations = Column(JSON, nullable=False, default=list)

    confidence = Column(String(12), nullable=False)
    tier = Column(Integer, nullable=False)
    occurred_at_utc = Column(DateTime(timezone=True), nullable=False)

    edition = relationship("EditionModel", back_populates="signals")


class IngestionRunModel(Base):
    __tablename__ = "ingestion_runs"

    id = Column(String(36), primary_key=True, default=new_id)
    status = Column(String(10), nullable=False, default="RUNNING")
    started_at_utc = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    finished_at_utc = Column(DateTime(timezone=True), nullable=True)

    items_fetched = Column(Integer, nullable=False, default=0)
    items_created = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    log_text = Column(Text, nullable=True)
    log_path = Column(String(500), nullable=True)
    triggered_by = Column(String(100), nullable=False, default="manual")

    edition_id = Column(String(36), ForeignKey("editions.id", ondelete="SET NULL"), nullable=True)
