"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class CreateRFIDAccountInput:
    """Attributes supplied when a CPO owner registers a new RFID account."""

    name: str
    address: str
    email_address: str
    mobile_number: str
    vehicle_plate_number: str
    vehicle_brand: str
    vehicle_model: str
    username: str
    rfid_card_tag: str


@dataclass(slots=True)
class CallerIdentity:
    """Authenticated merchant user resolved from the access token."""

    user_id: int
    role: str
