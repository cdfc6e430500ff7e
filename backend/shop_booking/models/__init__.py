from shop_booking.models.appointment import Appointment

__all__ = ["Appointment"]
