"""Map Deye Cloud device records to Google smart-home devices.

Classification is a small ordered table of keyword rules evaluated
against the lowercased product type; the first match wins and anything
unmatched falls back to a light. Every device only gets OnOff.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

TYPE_LIGHT = "action.devices.types.LIGHT"
TYPE_SWITCH = "action.devices.types.SWITCH"
TRAIT_ON_OFF = "action.devices.traits.OnOff"

DEFAULT_DEVICE_NAME = "Deye Device"
DEFAULT_MODEL = "Unknown"
MANUFACTURER = "Deye"

# (keywords, device type, traits)
DEVICE_TYPE_RULES: tuple[tuple[tuple[str, ...], str, tuple[str, ...]], ...] = (
    (("inverter", "battery"), TYPE_SWITCH, (TRAIT_ON_OFF,)),
)
DEFAULT_DEVICE_TYPE = (TYPE_LIGHT, (TRAIT_ON_OFF,))


@dataclass(frozen=True)
class CanonicalDevice:
    id: str | None
    type: str
    traits: tuple[str, ...]
    display_name: str
    manufacturer: str = MANUFACTURER
    model: str = DEFAULT_MODEL
    reports_state_proactively: bool = True
    default_names: tuple[str, ...] = field(default=())

    def to_google(self) -> dict:
        """Render as a SYNC response device entry."""
        return {
            "id": self.id,
            "type": self.type,
            "traits": list(self.traits),
            "name": {
                "defaultNames": list(self.default_names or (self.display_name,)),
                "name": self.display_name,
                "nicknames": [self.display_name],
            },
            "willReportState": self.reports_state_proactively,
            "deviceInfo": {
                "manufacturer": self.manufacturer,
                "model": self.model,
                "hwVersion": "1.0",
                "swVersion": "1.0",
            },
        }


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def classify_product_type(product_type: Any) -> tuple[str, tuple[str, ...]]:
    """Return (device type, traits) for a Deye product type string."""
    normalized = (_text(product_type) or "").lower()
    if normalized:
        for keywords, device_type, traits in DEVICE_TYPE_RULES:
            if any(keyword in normalized for keyword in keywords):
                return device_type, traits
    return DEFAULT_DEVICE_TYPE


def device_id(record: dict) -> str | None:
    """Serial number identifying a Deye device in list and status records."""
    return _text(record.get("deviceSn")) or _text(record.get("sn"))


def map_deye_device(record: Any) -> CanonicalDevice:
    """Build the canonical device for one Deye device record.

    Never raises; missing fields fall back to defaults and a record that
    is not a mapping is treated as an empty one.
    """
    if not isinstance(record, dict):
        record = {}
    device_type, traits = classify_product_type(record.get("productType"))
    device_name = _text(record.get("deviceName"))
    display_name = device_name or _text(record.get("name")) or DEFAULT_DEVICE_NAME

    return CanonicalDevice(
        id=device_id(record),
        type=device_type,
        traits=traits,
        display_name=display_name,
        model=_text(record.get("productType")) or DEFAULT_MODEL,
        default_names=(device_name or DEFAULT_DEVICE_NAME,),
    )
