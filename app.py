from flask import Flask, jsonify
import logging

import config
from database import OPTION_VERSION, get_db
from migrations import upgrade

# Configure logging
logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Initialize database
db = get_db()

# Result of the startup upgrade, reported by /api/upgrade/status
upgrade_result = None


# ==================== Security Middleware ====================

@app.after_request
def add_security_headers(response):
    """Add security headers to all responses."""
    # Prevent MIME type sniffing
    response.headers['X-Content-Type-Options'] = 'nosniff'
    # Prevent clickjacking
    response.headers['X-Frame-Options'] = 'SAMEORIGIN'
    # Referrer policy
    response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
    return response


def run_startup_upgrade():
    """Upgrade the data before the server starts accepting requests."""
    global upgrade_result
    upgrade_result = upgrade(db)
    logger.info(f"Startup upgrade check: {upgrade_result.outcome.value}")
    return upgrade_result


@app.route('/api/upgrade/status')
def upgrade_status():
    """Report the outcome of the startup upgrade."""
    if upgrade_result is None:
        return jsonify({'outcome': 'pending', 'target_version': config.VERSION})
    return jsonify(upgrade_result.to_dict())


@app.route('/api/version')
def version():
    return jsonify({
        'version': config.VERSION,
        'data_version': db.get_option(OPTION_VERSION),
    })


if __name__ == '__main__':
    run_startup_upgrade()
    app.run(debug=config.DEV_MODE, port=config.PORT)
