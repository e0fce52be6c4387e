"""Reservation domain services."""

from .booking_service import BookingCoordinator

__all__ = ["BookingCoordinator"]
