"""
Orders Routes - Flask Blueprint

Handles order tracking endpoints: listing, manual entry, status changes,
spend summary and mailbox sync.
Routes are thin controllers that delegate to orders_service for business logic.
"""

from flask import Blueprint, jsonify, request

from order_mail.logging_config import get_logger
from services import orders_service
from services.orders_service import MailboxNotConnectedError, OrderNotFoundError

logger = get_logger(__name__)

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.route("", methods=["GET"])
def list_orders():
    """
    Get all orders for a user.

    Query params:
        user_id (int): User ID (default: 1)

    Returns:
        List of orders, newest purchase first
    """
    try:
        user_id = int(request.args.get("user_id", 1))
        return jsonify(orders_service.list_orders(user_id))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.exception(f"List orders error: {e}")
        return jsonify({"error": str(e)}), 500


@orders_bp.route("", methods=["POST"])
def create_order():
    """
    Create a manual order.

    Request body:
        user_id (int): User ID (default: 1)
        item_label (str): Required
        amount, quantity, category, status, purchase_date,
        shop_name, variant, tracking_number, carrier: Optional

    Returns:
        Created order (201)
    """
    try:
        data = request.get_json(silent=True) or {}
        user_id = int(data.get("user_id", 1))
        order = orders_service.create_manual_order(user_id, data)
        return jsonify(order), 201
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.exception(f"Create order error: {e}")
        return jsonify({"error": str(e)}), 500


@orders_bp.route("/<int:order_pk>/status", methods=["PATCH"])
def update_order_status(order_pk):
    """
    Update an order's lifecycle status.

    Request body:
        user_id (int): User ID (default: 1)
        status (str): Ordered, Shipped, Out for Delivery or Arrived

    Returns:
        Updated order
    """
    try:
        data = request.get_json(silent=True) or {}
        user_id = int(data.get("user_id", 1))
        order = orders_service.update_status(user_id, order_pk, data.get("status"))
        return jsonify(order)
    except OrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.exception(f"Update order status error: {e}")
        return jsonify({"error": str(e)}), 500


@orders_bp.route("/<int:order_pk>", methods=["DELETE"])
def delete_order(order_pk):
    """
    Delete an order.

    Query params:
        user_id (int): User ID (default: 1)
    """
    try:
        user_id = int(request.args.get("user_id", 1))
        return jsonify(orders_service.delete_order(user_id, order_pk))
    except OrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.exception(f"Delete order error: {e}")
        return jsonify({"error": str(e)}), 500


@orders_bp.route("/summary", methods=["GET"])
def get_summary():
    """
    Get spend and shipping summary.

    Query params:
        user_id (int): User ID (default: 1)
        budget_limit (float): Optional spending limit

    Returns:
        Summary dict
    """
    try:
        user_id = int(request.args.get("user_id", 1))
        budget_limit = request.args.get("budget_limit")
        budget_limit = float(budget_limit) if budget_limit else None
        return jsonify(orders_service.get_order_summary(user_id, budget_limit))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.exception(f"Order summary error: {e}")
        return jsonify({"error": str(e)}), 500


@orders_bp.route("/sync", methods=["POST"])
def sync():
    """
    Sync orders from the user's mailbox.

    Request body:
        user_id (int): User ID (default: 1)
        async (bool): Queue on the worker instead of syncing inline

    Returns:
        Sync result (200) or queued task details (202)
    """
    try:
        data = request.get_json(silent=True) or {}
        user_id = int(data.get("user_id", 1))

        if data.get("async"):
            return jsonify(orders_service.start_sync(user_id)), 202

        return jsonify(orders_service.run_sync(user_id))
    except MailboxNotConnectedError as e:
        return jsonify({"error": str(e)}), 401
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.exception(f"Order sync error: {e}")
        return jsonify({"error": str(e)}), 500
