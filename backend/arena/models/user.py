"""
User profile referenced by bookings.
Accounts and credentials belong to the auth service; this row only carries
identity and booking aggregates.
"""

from sqlalchemy import Column, Integer, String, Boolean

from arena.db.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Aggregates (stats consumer only)
    total_bookings = Column(Integer, nullable=False, default=0)
    total_spent = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
