# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Command line entry point.

Polling commands are meant to be run serially by cron (or by run-scheduler):
  check-calendar                  daily: which products are on which days
  check-events                    a few times a day: every known day from today
  check-todays-events             more often: just today
  check-if-events-starting-soon   every minute: only works if a session is about to start
"""
import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from icescraper import config
from icescraper.auth import ServiceAccountAuth
from icescraper.errors import AuthConfigError, IceScraperError
from icescraper.products import ProductCatalog, load_products
from icescraper.reporting import dump_store, format_dump, format_summary, summarise
from icescraper.store import EventStore
from icescraper.sync import CalendarReconciler, IceSyncEngine
from icescraper.sync.scheduler import SyncScheduler
from icescraper.utils.logger import StructuredLogger, configure_logging
from icescraper.utils.metrics import MetricsCollector

logger = logging.getLogger(__name__)

SYNC_COMMANDS = ('check-calendar', 'check-events', 'check-todays-events',
                 'check-if-events-starting-soon', 'run-scheduler')

# command -> (start_today, end_tomorrow)
SUMMARY_COMMANDS = {
    'summary': (True, False),
    'brief-summary': (True, True),
    'full-summary': (False, False),
}

COMMANDS = SYNC_COMMANDS + tuple(SUMMARY_COMMANDS) + ('dump-db', 'serve')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='icescraper',
        description='Track ice rink sessions and mirror them to Google Calendar',
    )
    parser.add_argument('command', choices=COMMANDS)
    return parser


def setup_gcal_sync(catalog: ProductCatalog, metrics: MetricsCollector) -> CalendarReconciler:
    """Calendar sync needs a credential file; the token file is optional"""
    authenticator = None
    if config.GCAL_CRED_FILE:
        try:
            authenticator = ServiceAccountAuth(config.GCAL_CRED_FILE, config.GCAL_TOKEN_FILE or None)
        except AuthConfigError as e:
            logger.error(f"Can't create GCal client - no syncing: {e}")
    else:
        logger.info("No GCal credentials configured - calendar sync disabled")
    return CalendarReconciler(authenticator, catalog, metrics=metrics)


def build_engine(store: EventStore) -> IceSyncEngine:
    catalog = load_products(config.PRODUCTS_FILE)
    metrics = MetricsCollector()
    reconciler = setup_gcal_sync(catalog, metrics)
    return IceSyncEngine(store, catalog, reconciler=reconciler, metrics=metrics)


def run_command(command: str, store: EventStore) -> int:
    if command in SUMMARY_COMMANDS:
        start_today, end_tomorrow = SUMMARY_COMMANDS[command]
        print(format_summary(summarise(store, start_today, end_tomorrow)), end='')
        return 0

    if command == 'dump-db':
        print(format_dump(dump_store(store)), end='')
        return 0

    if command == 'serve':
        from icescraper.app import create_app
        create_app(store).run(host='0.0.0.0', port=config.PORT, debug=config.DEBUG)
        return 0

    engine = build_engine(store)
    if command == 'check-calendar':
        engine.check_for_new_days()
    elif command == 'check-events':
        engine.check_for_events(only_today=False)
    elif command == 'check-todays-events':
        engine.check_for_events(only_today=True)
    elif command == 'check-if-events-starting-soon':
        engine.check_if_events_starting_soon()
    elif command == 'run-scheduler':
        SyncScheduler(engine).run_forever()
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    try:
        store = EventStore.open(config.DB_FILE)
    except SQLAlchemyError as e:
        logger.error(f"Can't open database {config.DB_FILE}: {e}")
        return 1

    try:
        return run_command(args.command, store)
    except (IceScraperError, SQLAlchemyError) as e:
        logger.error(f"❌ {args.command} failed: {e}")
        StructuredLogger(__name__).log_sync_event('pass_failed', {
            'command': args.command,
            'error_type': type(e).__name__,
            'error': str(e),
        })
        return 1
    finally:
        store.close()


if __name__ == '__main__':
    sys.exit(main())
