# servio/db/models/business_profile.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import relationship
from servio.db.base import Base

VERIFICATION_STATUSES = ("approved", "pending", "rejected", "resubmitted")


class BusinessProfile(Base):
    """
    Provider's business identity. The engine only reads two things from it:
    the verification gate and the commission rate.
    """
    __tablename__ = "business_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    business_name = Column(String, nullable=False)

    verification_status = Column(String, nullable=False, default="pending", server_default="pending")
    commission_rate = Column(Numeric(5, 2), nullable=True)  # percent, NULL -> platform default

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="business_profile")
