from sqlalchemy import Column, Integer, String, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func
from orstock.database import Base


class Locker(Base):
    """One cabinet's stock table for one month."""

    __tablename__ = "lockers"
    __table_args__ = (
        UniqueConstraint("cabinet_id", "month", "year", name="uq_lockers_cabinet_month_year"),
    )

    pk = Column(Integer, primary_key=True)
    cabinet_id = Column(Integer, nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    name = Column(String(200), nullable=False)
    # [{"id", "name", "initialStock", "stockRecords": [{"date", "stock"}]}]
    devices = Column(JSON, nullable=False, default=list)
    last_updated = Column(DateTime(timezone=True), server_default=func.now())
    last_updated_by = Column(String(200))
    # Bumped by the ORM on every flush; UPDATEs are conditional on the value that was read
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
