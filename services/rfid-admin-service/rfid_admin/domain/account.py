from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class AccountStatus(str, Enum):
    """Legal values of an RFID account's ``user_status``."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


@dataclass(slots=True)
class RFIDAccount:
    """RFID driver account owned by a single CPO owner.

    Sensitive attributes hold ciphertext while the record travels between the
    repository and the service, and plaintext once the service hands it out.
    """

    id: int
    cpo_owner_id: int
    name: str | None
    address: str | None
    email_address: str | None
    mobile_number: str | None
    vehicle_plate_number: str | None
    vehicle_brand: str | None
    vehicle_model: str | None
    username: str
    rfid_card_tag: str
    balance: Decimal = Decimal("0")
    user_status: str = AccountStatus.ACTIVE.value
    row_number: int | None = None
