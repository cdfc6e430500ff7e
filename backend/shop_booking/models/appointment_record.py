from sqlalchemy import Column, String, JSON, DateTime, Text
from shop_booking.services.dates import utcnow
from shop_booking.core.database import Base


class AppointmentRecord(Base):
    __tablename__ = "appointments"

    id = Column(String, primary_key=True)
    status = Column(String, default="pending")  # pending, confirmed, declined, tentative
    gcal_event_id = Column(String, nullable=True, index=True)

    # Customer Info
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=True)

    # Appointment Details
    service = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    start_iso = Column(String, nullable=False)
    end_iso = Column(String, nullable=False)

    # Request fields we don't model explicitly
    extra = Column(JSON, default=dict)

    created_at = Column(DateTime(timezone=True), default=utcnow)

    def __repr__(self):
        return f"<AppointmentRecord(id={self.id}, customer={self.name}, start={self.start_iso})>"
