import enum


class BookingStatus(str, enum.Enum):
    """Lifecycle of a booking; COMPLETED, CANCELLED and DISPUTED are terminal."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"


# Bookings that let both parties exchange contact details in messages.
QUALIFYING_BOOKING_STATUSES = (
    BookingStatus.CONFIRMED,
    BookingStatus.IN_PROGRESS,
    BookingStatus.COMPLETED,
)
