from __future__ import annotations

import time
from dataclasses import replace
from decimal import Decimal

import jwt
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from rfid_admin.api import routes
from rfid_admin.api.errors import install_exception_handlers
from rfid_admin.config import get_settings
from rfid_admin.domain.account import RFIDAccount
from rfid_admin.domain.contracts import CreateRFIDAccountInput
from rfid_admin.domain.service import RFIDAccountService
from rfid_admin.security.cipher import FieldCipher

TEST_KEY = bytes(range(32))
TEST_IV = bytes(range(16, 32))

OWNER_USER_ID = 7
OTHER_OWNER_USER_ID = 8


class FakeRepository:
    """In-memory repository mimicking the Postgres tables and creation procedure."""

    def __init__(self) -> None:
        self.owners: dict[int, int] = {OWNER_USER_ID: 100, OTHER_OWNER_USER_ID: 200}
        self.accounts: dict[int, RFIDAccount] = {}
        self.rfid_cards: dict[str, bool] = {}
        self.created: list[tuple[int, CreateRFIDAccountInput, str]] = []
        self.writes: list[tuple[str, int, object]] = []
        self.search_calls: list[dict] = []
        self.forced_status: str | None = None
        self._seq = 0

    def add_card(self, tag: str, owned: bool = False) -> None:
        self.rfid_cards[tag] = owned

    def seed(self, owner_user_id: int, **values) -> RFIDAccount:
        self._seq += 1
        account = RFIDAccount(
            id=self._seq,
            cpo_owner_id=self.owners[owner_user_id],
            name=values.get("name"),
            address=values.get("address"),
            email_address=values.get("email_address"),
            mobile_number=values.get("mobile_number"),
            vehicle_plate_number=values.get("vehicle_plate_number"),
            vehicle_brand=values.get("vehicle_brand"),
            vehicle_model=values.get("vehicle_model"),
            username=values.get("username", f"user{self._seq}"),
            rfid_card_tag=values.get("rfid_card_tag", f"TAG{self._seq:04d}"),
            balance=values.get("balance", Decimal("0")),
            user_status=values.get("user_status", "ACTIVE"),
        )
        self.accounts[account.id] = account
        self.rfid_cards[account.rfid_card_tag] = True
        return account

    def _scoped(self, owner_user_id: int) -> list[RFIDAccount]:
        owner = self.owners.get(owner_user_id)
        rows = [a for a in self.accounts.values() if a.cpo_owner_id == owner]
        return sorted(rows, key=lambda a: a.id, reverse=True)

    def _page(self, rows: list[RFIDAccount], limit: int, offset: int) -> list[RFIDAccount]:
        numbered = [replace(row, row_number=index) for index, row in enumerate(rows, start=1)]
        return numbered[offset : offset + limit]

    def list_accounts(self, owner_user_id: int, limit: int, offset: int):
        return self._page(self._scoped(owner_user_id), limit, offset)

    def search_accounts(
        self, owner_user_id: int, rfid_prefix: str, mobile_number_cipher: str, limit: int, offset: int
    ):
        self.search_calls.append(
            {"rfid_prefix": rfid_prefix, "mobile_number_cipher": mobile_number_cipher}
        )
        rows = [
            a
            for a in self._scoped(owner_user_id)
            if a.rfid_card_tag.startswith(rfid_prefix) or a.mobile_number == mobile_number_cipher
        ]
        return self._page(rows, limit, offset)

    def get_account(self, owner_user_id: int, account_id: int):
        account = self.accounts.get(account_id)
        if account is None or account.cpo_owner_id != self.owners.get(owner_user_id):
            return None
        return account

    def create_account(self, owner_user_id: int, payload: CreateRFIDAccountInput, password_hash: str):
        self.created.append((owner_user_id, payload, password_hash))
        if self.forced_status is not None:
            return self.forced_status
        for account in self.accounts.values():
            if account.email_address == payload.email_address:
                return "EXISTING_EMAIL_ADDRESS"
            if account.mobile_number == payload.mobile_number:
                return "EXISTING_MOBILE_NUMBER"
            if account.vehicle_plate_number == payload.vehicle_plate_number:
                return "EXISTING_PLATE_NUMBER"
            if account.username == payload.username:
                return "EXISTING_USERNAME"
        if payload.rfid_card_tag not in self.rfid_cards:
            return "RFID_DOES_NOT_EXIST"
        if self.rfid_cards[payload.rfid_card_tag]:
            return "RFID_ALREADY_OWNED"
        self._seq += 1
        self.accounts[self._seq] = RFIDAccount(
            id=self._seq,
            cpo_owner_id=self.owners[owner_user_id],
            name=payload.name,
            address=payload.address,
            email_address=payload.email_address,
            mobile_number=payload.mobile_number,
            vehicle_plate_number=payload.vehicle_plate_number,
            vehicle_brand=payload.vehicle_brand,
            vehicle_model=payload.vehicle_model,
            username=payload.username,
            rfid_card_tag=payload.rfid_card_tag,
        )
        self.rfid_cards[payload.rfid_card_tag] = True
        return "SUCCESS"

    def update_account(self, owner_user_id: int, account_id: int, values):
        self.writes.append(("fields", account_id, dict(values)))
        account = self.get_account(owner_user_id, account_id)
        if account is None:
            return 0
        self.accounts[account_id] = replace(account, **values)
        return 1

    def update_account_status(self, owner_user_id: int, account_id: int, status: str):
        self.writes.append(("status", account_id, status))
        account = self.get_account(owner_user_id, account_id)
        if account is None or account.user_status == status:
            return 0
        self.accounts[account_id] = replace(account, user_status=status)
        return 1


class FakeDispatcher:
    def __init__(self, succeed: bool = True, error: Exception | None = None) -> None:
        self.sent: list[tuple[str, str]] = []
        self.succeed = succeed
        self.error = error

    def send_onboarding_credential(self, email_address: str, password: str) -> bool:
        self.sent.append((email_address, password))
        if self.error is not None:
            raise self.error
        return self.succeed


@pytest.fixture
def cipher() -> FieldCipher:
    return FieldCipher(TEST_KEY, TEST_IV)


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture
def service(repository, cipher, dispatcher) -> RFIDAccountService:
    return RFIDAccountService(repository, cipher, dispatcher, password_factory=lambda: "Xy7Kp3Qm")


def make_token(user_id: int = OWNER_USER_ID, role: str = "CPO_OWNER", **overrides) -> str:
    settings = get_settings()
    now = int(time.time())
    payload = {
        "iss": settings.jwt_issuer,
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + 300,
    }
    payload.update(overrides)
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def auth_header(user_id: int = OWNER_USER_ID, role: str = "CPO_OWNER") -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


@pytest.fixture
def api_client(service):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    app.include_router(routes.router)
    install_exception_handlers(app)
    app.state.rfid_account_service = service

    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
