"""Domain error taxonomy surfaced by the RFID account service.

Errors carry a machine-readable ``message`` token plus optional ``data`` so
the HTTP boundary can build a response without parsing free text.
"""

from __future__ import annotations

from typing import Any


class RFIDAccountError(Exception):
    """Base class for every error raised by the RFID account workflows."""

    def __init__(self, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data if data is not None else []


class ClientFaultError(RFIDAccountError):
    """The request cannot be honoured as given; retrying it will not help."""


class AccountNotFoundError(ClientFaultError):
    """The account id is not visible under the caller's tenant scope."""


class ForbiddenRoleError(ClientFaultError):
    """The caller's role is not allowed to administer RFID accounts."""


class AuthenticationError(ClientFaultError):
    """The caller did not present a usable access token."""


class ServerFaultError(RFIDAccountError):
    """Storage reported an outcome this service does not recognise."""
