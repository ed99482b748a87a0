from icescraper.cal_ops.mapping import build_calendar_event, calendar_event_id, product_link
from icescraper.cal_ops.writer import CalendarWriter

__all__ = ['CalendarWriter', 'build_calendar_event', 'calendar_event_id', 'product_link']
