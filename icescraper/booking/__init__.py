from icescraper.booking.client import BookingClient

__all__ = ['BookingClient']
