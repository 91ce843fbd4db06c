# servio/db/models/user.py
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from servio.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default="customer", server_default="customer")

    phone = Column(String, nullable=True)

    # only populated for providers
    business_profile = relationship("BusinessProfile", back_populates="user", uselist=False)
    services = relationship("Service", back_populates="provider", lazy="selectin")
    availabilities = relationship("ProviderAvailability", back_populates="provider", lazy="selectin")
    blocked_dates = relationship("ProviderBlockedDate", back_populates="provider", lazy="selectin")
