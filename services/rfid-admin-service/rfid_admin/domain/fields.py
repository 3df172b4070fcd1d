"""Classification of RFID account attributes into sensitive and plain fields."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from ..security.cipher import FieldCipher


class FieldKind(str, Enum):
    SENSITIVE = "sensitive"
    PLAIN = "plain"


ACCOUNT_FIELDS: dict[str, FieldKind] = {
    "name": FieldKind.SENSITIVE,
    "address": FieldKind.SENSITIVE,
    "email_address": FieldKind.SENSITIVE,
    "mobile_number": FieldKind.SENSITIVE,
    "vehicle_plate_number": FieldKind.SENSITIVE,
    "vehicle_brand": FieldKind.SENSITIVE,
    "vehicle_model": FieldKind.SENSITIVE,
    "username": FieldKind.PLAIN,
    "rfid_card_tag": FieldKind.PLAIN,
}

# Keys accepted by partial updates, mapped to the account attribute they change.
UPDATABLE_FIELDS: dict[str, str] = {
    "name": "name",
    "address": "address",
    "email": "email_address",
    "mobile_number": "mobile_number",
    "plate_number": "vehicle_plate_number",
    "brand": "vehicle_brand",
    "model": "vehicle_model",
    "username": "username",
}


def is_sensitive(attribute: str) -> bool:
    """Return ``True`` when ``attribute`` is stored encrypted.

    Unknown attributes are treated as plain, so the helpers below never touch
    store-managed columns such as ``balance`` or ``user_status``.
    """
    return ACCOUNT_FIELDS.get(attribute) is FieldKind.SENSITIVE


def encrypt_fields(values: Mapping[str, Any], cipher: FieldCipher) -> dict[str, Any]:
    """Return a copy of ``values`` with every sensitive attribute encrypted."""
    return {
        key: cipher.encrypt(value) if is_sensitive(key) else value
        for key, value in values.items()
    }


def decrypt_fields(values: Mapping[str, Any], cipher: FieldCipher) -> dict[str, Any]:
    """Return a copy of ``values`` with every sensitive attribute decrypted."""
    return {
        key: cipher.decrypt(value) if is_sensitive(key) else value
        for key, value in values.items()
    }
