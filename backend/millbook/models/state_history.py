"""BookingStateHistory: append-only audit trail of booking transitions.

One row per state change, including the creation event (``previous_state``
is NULL only there).  Rows are never updated; they disappear only when a
never-actioned booking is deleted outright.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from millbook.database import Base


class BookingStateHistory(Base):
    __tablename__ = "booking_state_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    previous_state: Mapped[str | None] = mapped_column(String(20))
    new_state: Mapped[str] = mapped_column(String(20), nullable=False)
    changed_by: Mapped[int | None] = mapped_column(Integer)  # user id
    notes: Mapped[str | None] = mapped_column(Text)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )

    booking = relationship("Booking", back_populates="history")
