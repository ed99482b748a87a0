"""Ice Calendar Sync: track ice rink sessions and mirror them to Google Calendar"""

__version__ = "1.0.0"
