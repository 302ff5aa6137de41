from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from core.models import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(128), nullable=False)
    last_name = Column(String(128), nullable=False)
    email = Column(String(255), nullable=True, unique=True)
    role = Column(String(32), nullable=False, index=True)

    royalty_records = relationship("RoyaltyRecord", back_populates="miner")
