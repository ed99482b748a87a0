# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Ice Calendar Sync - Read-only HTTP views of the event store
"""
import logging

from flask import Flask, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from icescraper import config
from icescraper.errors import IceScraperError
from icescraper.reporting import dump_store, summarise
from icescraper.store import EventStore
from icescraper.utils.timezone import get_local_time

logger = logging.getLogger(__name__)

# scope -> (start_today, end_tomorrow)
SUMMARY_SCOPES = {
    'today': (True, False),
    'brief': (True, True),
    'full': (False, False),
}


def create_app(store: EventStore) -> Flask:
    app = Flask(__name__)
    app.config['STORE'] = store

    @app.route('/health')
    def health_check():
        """Basic health check endpoint"""
        return jsonify({
            "status": "healthy",
            "timestamp": get_local_time().isoformat(),
            "timezone": config.LOCAL_TIMEZONE,
            "dry_run": config.DRY_RUN_MODE,
        }), 200

    @app.route('/summary')
    def summary():
        scope = request.args.get('scope', 'today')
        if scope not in SUMMARY_SCOPES:
            return jsonify({"error": f"Unknown scope '{scope}'", "scopes": list(SUMMARY_SCOPES)}), 400

        start_today, end_tomorrow = SUMMARY_SCOPES[scope]
        try:
            rows = summarise(store, start_today=start_today, end_tomorrow=end_tomorrow)
        except (IceScraperError, SQLAlchemyError) as e:
            logger.error(f"Can't summarise store: {e}")
            return jsonify({"error": str(e)}), 500
        return jsonify({"scope": scope, "sessions": rows})

    @app.route('/dump')
    def dump():
        try:
            content = dump_store(store)
        except SQLAlchemyError as e:
            logger.error(f"Can't dump store: {e}")
            return jsonify({"error": str(e)}), 500

        # JSON object keys must be strings
        for day in content.values():
            for session_id, history in day['events'].items():
                day['events'][session_id] = {str(seq): payload for seq, payload in history.items()}
        return jsonify(content)

    return app
