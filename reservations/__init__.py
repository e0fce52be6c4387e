"""Reservation service contracts and booking services."""
