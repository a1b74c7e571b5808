"""Booking-slot availability and reservation core for 1:1 call products."""

__version__ = "0.1.0"
