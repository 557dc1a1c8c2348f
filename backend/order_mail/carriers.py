"""
Carrier and Category Reference Data

Known couriers (with public tracking pages) and order categories.
"""

from typing import Optional

JT_EXPRESS = "J&T Express"
STANDARD_CARRIER = "Standard"

# Carrier name -> tracking URL template
CARRIER_TRACKING_URLS = {
    "USPS": "https://tools.usps.com/go/TrackConfirmAction?qtc_tLabels1={tracking}",
    "FedEx": "https://www.fedex.com/fedextrack/?trknbr={tracking}",
    "UPS": "https://www.ups.com/track?tracknum={tracking}",
    "DHL": "https://www.dhl.com/us-en/home/tracking/tracking-express.html?submit=1&tracking-id={tracking}",
    "J&T": "https://www.jtexpress.ph/trajectoryQuery?waybillNo={tracking}",
    JT_EXPRESS: "https://www.jtexpress.ph/trajectoryQuery?waybillNo={tracking}",
    "LBC": "https://www.lbcexpress.com/track/?tracking_no={tracking}",
}

CARRIERS = ["USPS", "FedEx", "UPS", "DHL", JT_EXPRESS, "LBC", STANDARD_CARRIER]

CATEGORIES = ["Electronics", "Fashion", "Beauty", "Home", "Food", "Other"]


def guess_carrier(tracking_number: str) -> str:
    """J&T for 'JT' tracking numbers, otherwise the generic label."""
    if tracking_number and tracking_number.upper().startswith("JT"):
        return JT_EXPRESS
    return STANDARD_CARRIER


def get_tracking_url(carrier: str, tracking_number: str) -> Optional[str]:
    """
    Build the public tracking page URL for a shipment.

    Returns:
        URL string, or None for unknown carriers / missing tracking number
    """
    if not tracking_number or not carrier:
        return None

    template = CARRIER_TRACKING_URLS.get(carrier)
    if not template:
        return None
    return template.format(tracking=tracking_number)
