# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Environment-based configuration for Ice Calendar Sync
"""
import os

# Environment Detection
ENVIRONMENT = os.environ.get('ENVIRONMENT', 'production')
DEBUG = ENVIRONMENT == 'development'

# Storage and product catalog
DB_FILE = os.environ.get('ICESCRAPER_DB_FILE', 'ice-info.db')
PRODUCTS_FILE = os.environ.get('ICESCRAPER_PRODUCTS_FILE', 'products.json')

# Google service account (calendar sync is disabled when no credential file is set)
GCAL_CRED_FILE = os.environ.get('ICESCRAPER_GCAL_CRED_FILE', '')
GCAL_TOKEN_FILE = os.environ.get('ICESCRAPER_GCAL_TOKEN_FILE', '')
GCAL_API_BASE = os.environ.get('GCAL_API_BASE', 'https://www.googleapis.com/calendar/v3')
GCAL_SCOPE = 'https://www.googleapis.com/auth/calendar'

# Booking site
BOOKING_BASE_URL = os.environ.get('BOOKING_BASE_URL', 'https://bookings.national-ice-centre.com/booking')

# Session times on the booking site are written in this civil timezone
LOCAL_TIMEZONE = os.environ.get('LOCAL_TIMEZONE', 'Europe/London')

# Application Settings
PORT = int(os.environ.get('PORT', 5000))

# Sync Settings
DRY_RUN_MODE = os.environ.get('DRY_RUN_MODE', 'False').lower() == 'true'
STARTING_SOON_MINUTES = int(os.environ.get('STARTING_SOON_MINUTES', 5))

# Scheduler Intervals
CALENDAR_CHECK_TIME = os.environ.get('CALENDAR_CHECK_TIME', '06:00')
EVENTS_INTERVAL_HOURS = int(os.environ.get('EVENTS_INTERVAL_HOURS', 4))
TODAYS_EVENTS_INTERVAL_MIN = int(os.environ.get('TODAYS_EVENTS_INTERVAL_MIN', 30))
STARTING_SOON_INTERVAL_MIN = int(os.environ.get('STARTING_SOON_INTERVAL_MIN', 1))

# HTTP Settings
REQUEST_TIMEOUT = int(os.environ.get('REQUEST_TIMEOUT', 30))

# Retry Settings (booking site fetches only)
MAX_RETRIES = int(os.environ.get('MAX_RETRIES', 3))
BASE_DELAY = float(os.environ.get('BASE_DELAY', 1.0))

# Logging
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
STRUCTURED_LOGGING = os.environ.get('STRUCTURED_LOGGING', 'True').lower() == 'true'

# Development Settings
if DEBUG:
    LOG_LEVEL = 'DEBUG'
    DRY_RUN_MODE = True
