"""
Mailbox Routes - Flask Blueprint

Mailbox connection status, token hand-off and disconnect.
"""

from flask import Blueprint, jsonify, request

from order_mail.logging_config import get_logger
from services import orders_service
from services.orders_service import MailboxNotConnectedError

logger = get_logger(__name__)

mailbox_bp = Blueprint("mailbox", __name__, url_prefix="/api/mailbox")


@mailbox_bp.route("/connection", methods=["GET"])
def get_connection():
    """
    Get mailbox connection status for a user.

    Query params:
        user_id (int): User ID (default: 1)

    Returns:
        Connection details (never token values)
    """
    try:
        user_id = int(request.args.get("user_id", 1))
        return jsonify(orders_service.get_connection(user_id))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.exception(f"Get mailbox connection error: {e}")
        return jsonify({"error": str(e)}), 500


@mailbox_bp.route("/connect", methods=["POST"])
def connect():
    """
    Store OAuth tokens for an authorized mailbox.

    Request body:
        user_id (int): User ID (default: 1)
        email_address (str): Mailbox address
        access_token (str): OAuth access token
        refresh_token (str): Optional refresh token
        expires_at (str): Optional ISO expiry timestamp
    """
    try:
        data = request.get_json(silent=True) or {}
        user_id = int(data.get("user_id", 1))
        return jsonify(orders_service.connect_mailbox(user_id, data)), 201
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.exception(f"Mailbox connect error: {e}")
        return jsonify({"error": str(e)}), 500


@mailbox_bp.route("/disconnect", methods=["POST"])
def disconnect():
    """
    Disconnect the user's mailbox. Stored orders are kept.

    Request body:
        user_id (int): User ID (default: 1)
    """
    try:
        data = request.get_json(silent=True) or {}
        user_id = int(data.get("user_id", 1))
        orders_service.disconnect_mailbox(user_id)
        return jsonify({"message": "Mailbox disconnected successfully"})
    except MailboxNotConnectedError as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.exception(f"Mailbox disconnect error: {e}")
        return jsonify({"error": str(e)}), 500
