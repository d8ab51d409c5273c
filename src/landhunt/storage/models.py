"""SQLAlchemy ORM models for parcels and their enrichment records."""

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Float, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass


class ParcelRow(Base):
    """A parcel owned by the external parcel catalog. Read-only here."""

    __tablename__ = "parcels"

    id = Column(String(100), primary_key=True)
    address = Column(Text)
    area_sq_m = Column(Float)
    use_class = Column(String(200))
    local_plan_designation = Column(String(500))
    flood_zone = Column(String(50))
    constraints = Column(JSONType)
    ppd_snapshot = Column(JSONType)


class ParcelScoreRow(Base):
    """Latest AI suitability scores for a parcel, one row per parcel."""

    __tablename__ = "parcel_ai_scores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    parcel_id = Column(String(100), nullable=False, unique=True)
    scores = Column(JSONType, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class PlanningSummaryRow(Base):
    """Planning-decision summary keyed by parcel_id, or source_url when unlinked."""

    __tablename__ = "planning_summaries"
    __table_args__ = (
        CheckConstraint(
            "(parcel_id IS NULL) <> (source_url IS NULL)",
            name="planning_summaries_one_key",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    parcel_id = Column(String(100), unique=True)
    source_url = Column(Text, unique=True)
    origin_url = Column(Text)
    decision = Column(String(20), nullable=False, default="unknown")
    summary = Column(Text, nullable=False, default="")
    policies = Column(JSONType, nullable=False, default=list)
    material_issues = Column(JSONType, nullable=False, default=list)
    risks = Column(JSONType, nullable=False, default=list)
    approval_probability = Column(Float)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class ParcelPassportRow(Base):
    """Append-only log of generated site passports."""

    __tablename__ = "parcel_passports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    parcel_id = Column(String(100), nullable=False, index=True)
    file_path = Column(Text, nullable=False)
    url = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
