import os
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

import database
from order_mail.logging_config import get_logger

# Load .env from project root (parent directory)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

logger = get_logger(__name__)

app = Flask(__name__)

# Get frontend URL from environment, default to localhost:5173
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

CORS(
    app,
    origins=[FRONTEND_URL, "http://127.0.0.1:5173"],
    supports_credentials=True,
)

# Flask secret key (use Secret Manager in production)
app.config["SECRET_KEY"] = os.getenv("FLASK_SECRET_KEY", os.urandom(32).hex())

# ============================================================================
# REGISTER BLUEPRINTS
# ============================================================================

from routes.health import health_bp  # noqa: E402
from routes.mailbox import mailbox_bp  # noqa: E402
from routes.orders import orders_bp  # noqa: E402

app.register_blueprint(health_bp)
app.register_blueprint(orders_bp)
app.register_blueprint(mailbox_bp)


@app.cli.command("init-db")
def init_db_command():
    """Create database tables."""
    database.init_db()


if __name__ == "__main__":
    database.init_db()

    logger.info("Order tracker backend starting on http://localhost:5000")
    logger.info("Test health: http://localhost:5000/api/health")

    app.run(debug=False, use_reloader=False, host="0.0.0.0", port=5000)
