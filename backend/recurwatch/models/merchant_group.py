"""
Merchant group database model.

Merchant groups are assigned upstream by the merchant matcher; detection only
reads them.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from recurwatch.database import Base


class MerchantGroup(Base):
    __tablename__ = "merchant_groups"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    display_name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="merchant_group")
