# servio/db/models/earning.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, func
from servio.db.base import Base


class Earning(Base):
    """Recognised provider earnings; at most one row per booking."""
    __tablename__ = "earnings"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, unique=True)

    amount = Column(Numeric(10, 2), nullable=False)
    commission = Column(Numeric(10, 2), nullable=False, default=0)
    net_amount = Column(Numeric(10, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
