"""genrental - generator rental bookings and fleet allocation."""

__version__ = "0.1.0"
