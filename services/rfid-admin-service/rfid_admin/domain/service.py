"""RFID account service orchestrating encryption, persistence, and onboarding."""

from __future__ import annotations

from dataclasses import asdict, fields, replace
import logging
from typing import Any, Callable, Mapping, Protocol

from .account import AccountStatus, RFIDAccount
from .contracts import CreateRFIDAccountInput
from .errors import AccountNotFoundError, ClientFaultError, ServerFaultError
from .fields import UPDATABLE_FIELDS, decrypt_fields, encrypt_fields
from ..repository import RFIDAccountRepository
from ..security.cipher import FieldCipher
from ..security.passwords import generate_password, hash_password

logger = logging.getLogger(__name__)

SUCCESS = "SUCCESS"
NO_CHANGES_APPLIED = "NO_CHANGES_APPLIED"

DEFAULT_LIMIT = 10
DEFAULT_OFFSET = 0

# Creation outcomes caused by the request itself rather than by the server.
CREATION_CLIENT_FAULTS = frozenset(
    {
        "EXISTING_EMAIL_ADDRESS",
        "EXISTING_MOBILE_NUMBER",
        "EXISTING_PLATE_NUMBER",
        "EXISTING_USERNAME",
        "RFID_DOES_NOT_EXIST",
        "RFID_ALREADY_OWNED",
    }
)


class CredentialDispatcher(Protocol):
    def send_onboarding_credential(self, email_address: str, password: str) -> bool: ...


class RFIDAccountService:
    """RFID account workflows for a CPO owner.

    Plaintext only exists on the caller's side of this class: inputs are
    encrypted before they reach the repository and outputs are decrypted
    before they are returned.
    """

    def __init__(
        self,
        repository: RFIDAccountRepository,
        cipher: FieldCipher,
        dispatcher: CredentialDispatcher,
        password_factory: Callable[[], str] = generate_password,
    ) -> None:
        """Store collaborators; the service keeps no per-request state."""
        self._repository = repository
        self._cipher = cipher
        self._dispatcher = dispatcher
        self._password_factory = password_factory

    def list_accounts(
        self, owner_id: int, limit: int | None = None, offset: int | None = None
    ) -> list[RFIDAccount]:
        """Return one decrypted page of the owner's RFID accounts."""
        limit, offset = _page(limit, offset)
        records = self._repository.list_accounts(owner_id, limit, offset)
        return [self._decrypt(record) for record in records]

    def search_accounts(
        self,
        owner_id: int,
        filter: str,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[RFIDAccount]:
        """Match accounts by RFID tag prefix or by exact mobile number.

        Mobile numbers are stored encrypted, so they can only be compared for
        equality against the encrypted filter value.
        """
        limit, offset = _page(limit, offset)
        records = self._repository.search_accounts(
            owner_id,
            rfid_prefix=filter,
            mobile_number_cipher=self._cipher.encrypt(filter),
            limit=limit,
            offset=offset,
        )
        return [self._decrypt(record) for record in records]

    def get_account(self, owner_id: int, account_id: int) -> RFIDAccount:
        """Return a decrypted account visible to the owner."""
        record = self._repository.get_account(owner_id, account_id)
        if record is None:
            raise AccountNotFoundError("USER_ID_DOES_NOT_EXIST")
        return self._decrypt(record)

    def create_account(self, owner_id: int, payload: CreateRFIDAccountInput) -> str:
        """Register a new account and email its one-time password.

        Raises
        ------
        ClientFaultError
            When storage reports a duplicate value or an unusable RFID tag.
        ServerFaultError
            For any other non-success status.
        """
        password = self._password_factory()
        encrypted = CreateRFIDAccountInput(**encrypt_fields(asdict(payload), self._cipher))

        status = self._repository.create_account(owner_id, encrypted, hash_password(password))

        if status in CREATION_CLIENT_FAULTS:
            logger.info("rfid account creation rejected for owner %s: %s", owner_id, status)
            raise ClientFaultError(status)
        if status != SUCCESS:
            logger.error("rfid account creation returned unexpected status %r", status)
            raise ServerFaultError("INTERNAL_SERVER_ERROR")

        logger.info("rfid account created for owner %s with tag %s", owner_id, payload.rfid_card_tag)
        self._notify(payload.email_address, payload.rfid_card_tag, password)
        return SUCCESS

    def update_account_fields(
        self, owner_id: int, account_id: int, data: Mapping[str, Any]
    ) -> str:
        """Apply a partial update limited to the allow-listed keys."""
        unknown = sorted(key for key in data if key not in UPDATABLE_FIELDS)
        if unknown:
            raise ClientFaultError(
                "INVALID_UPDATE_FIELDS",
                data={"invalid": unknown, "valid": list(UPDATABLE_FIELDS)},
            )
        if not data:
            return NO_CHANGES_APPLIED

        values = encrypt_fields(
            {UPDATABLE_FIELDS[key]: value for key, value in data.items()}, self._cipher
        )
        affected = self._repository.update_account(owner_id, account_id, values)
        if affected > 0:
            return SUCCESS
        return NO_CHANGES_APPLIED

    def set_account_status(self, owner_id: int, account_id: int, status: str) -> str:
        """Transition ``user_status`` to ``ACTIVE`` or ``INACTIVE``."""
        if status not in AccountStatus.values():
            raise ClientFaultError("INVALID_USER_STATUS", data={"valid": AccountStatus.values()})

        affected = self._repository.update_account_status(owner_id, account_id, status)
        if affected > 0:
            return SUCCESS
        return NO_CHANGES_APPLIED

    def _notify(self, email_address: str, rfid_card_tag: str, password: str) -> None:
        # The account is already stored; a failed email is not a failed creation.
        try:
            delivered = self._dispatcher.send_onboarding_credential(email_address, password)
        except Exception:
            logger.exception("onboarding credential dispatch raised for tag %s", rfid_card_tag)
            return
        if not delivered:
            logger.warning("onboarding credential not delivered for tag %s", rfid_card_tag)

    def _decrypt(self, record: RFIDAccount) -> RFIDAccount:
        values = {item.name: getattr(record, item.name) for item in fields(record)}
        return replace(record, **decrypt_fields(values, self._cipher))


def _page(limit: int | None, offset: int | None) -> tuple[int, int]:
    limit = DEFAULT_LIMIT if limit is None else limit
    offset = DEFAULT_OFFSET if offset is None else offset
    if limit < 0 or offset < 0:
        raise ClientFaultError("LIMIT_AND_OFFSET_MUST_BE_NON_NEGATIVE")
    return limit, offset
