"""
Tools Package
Utility tools for the AfterHeal system
"""

from .validators import (
    is_valid_phone,
    phone_digits
)

from .dose_generator import (
    doses_per_day,
    daily_slots,
    generate_dose_times
)

from .sms_gateway import (
    DeliveryOutcome,
    AlertMetadata,
    DeliveryGateway,
    SimulationGateway,
    TwilioGateway,
    VonageGateway,
    build_gateway
)


__all__ = [
    # Validators
    "is_valid_phone",
    "phone_digits",

    # Dose generation
    "doses_per_day",
    "daily_slots",
    "generate_dose_times",

    # SMS delivery
    "DeliveryOutcome",
    "AlertMetadata",
    "DeliveryGateway",
    "SimulationGateway",
    "TwilioGateway",
    "VonageGateway",
    "build_gateway",
]
