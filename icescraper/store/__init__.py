from icescraper.store.event_store import DayHandle, EventsHandle, EventStore, SessionHandle

__all__ = ['DayHandle', 'EventsHandle', 'EventStore', 'SessionHandle']
