import base64, json, requests
from logging import getLogger
from requests import Response

from app.src.constants import (
    OPENOBSERVE_ENABLED,
    OPENOBSERVE_HOST,
    OPENOBSERVE_ORG,
    OPENOBSERVE_PASSWORD,
    OPENOBSERVE_PORT,
    OPENOBSERVE_PROTOCOL,
    OPENOBSERVE_STREAM,
    OPENOBSERVE_TIMEOUT,
    OPENOBSERVE_USERNAME,
)

logger = getLogger("app.events")

# Prepare Basic Auth credentials
credentials = base64.b64encode(
    bytes(OPENOBSERVE_USERNAME + ":" + OPENOBSERVE_PASSWORD, "utf-8")
).decode("utf-8")

# Default headers for all requests
headers = {"Content-type": "application/json", "Authorization": "Basic " + credentials}

# Construct OpenObserve endpoint URL
openobserve_host = f"{OPENOBSERVE_PROTOCOL}://{OPENOBSERVE_HOST}:{OPENOBSERVE_PORT}"
openobserve_url = f"{openobserve_host}/api/{OPENOBSERVE_ORG}/{OPENOBSERVE_STREAM}/_json"


def logEvent(eventData: dict) -> Response | None:
    """
    Send an event log to the configured OpenObserve instance.

    This function serializes the given event data as JSON and sends it
    to the OpenObserve API using HTTP POST with Basic authentication.
    When OpenObserve is disabled the event is written to the `app.events`
    logger instead. Delivery failures are logged and not raised.

    Args:
        eventData (dict): A dictionary representing the event log to be sent.
            Example:
                {
                    "_method": "PUT",
                    "_path": "/order/7/stops",
                    "order_id": 7,
                }

    Returns:
        requests.Response | None: The HTTP response returned by the OpenObserve
            API, None when the event was not shipped.
    """
    payload = json.dumps(eventData, default=str)
    if not OPENOBSERVE_ENABLED:
        logger.info(payload)
        return None
    try:
        return requests.post(
            openobserve_url, headers=headers, data=payload, timeout=OPENOBSERVE_TIMEOUT
        )
    except requests.RequestException as e:
        logger.warning("Failed to ship event to OpenObserve: %s", e)
        return None
