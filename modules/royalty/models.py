from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer
from sqlalchemy.orm import relationship

from core.models import Base, TimestampMixin


class RoyaltyRecord(Base, TimestampMixin):
    __tablename__ = "royalty_records"

    id = Column(Integer, primary_key=True, index=True)
    miner_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    water_gel = Column(Float, nullable=False)
    nh4no3 = Column(Float, nullable=False)
    powder_factor = Column(Float, nullable=False)
    total_explosive_quantity = Column(Float, nullable=False)
    basic_volume = Column(Float, nullable=False)
    blasted_rock_volume = Column(Float, nullable=False)
    base_royalty = Column(Float, nullable=False)
    royalty_with_sscl = Column(Float, nullable=False)
    total_amount_with_vat = Column(Float, nullable=False)
    calculation_date = Column(DateTime(timezone=True), nullable=False)
    payment_due_date = Column(DateTime(timezone=True), nullable=True)

    miner = relationship("User", back_populates="royalty_records")
