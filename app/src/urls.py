"""
API Endpoint URL Constants

This module defines the URL paths used throughout the application
for accessing freight orders.

These URLs are relative paths and are typically prefixed by the API
gateway or service base URL when making requests.
"""

# -------------------------------
# Orders
# -------------------------------
URL_ORDER = "/order"
URL_ORDER_COUNTS = "/order/counts"
URL_ORDER_DETAIL = "/order/{order_id}"
URL_ORDER_ROUTE = "/order/{order_id}/route"
URL_ORDER_STOPS = "/order/{order_id}/stops"
URL_ORDER_RATE = "/order/{order_id}/rate"

# -------------------------------
# Service
# -------------------------------
URL_HEALTH = "/health"
