"""HTTP route definitions for RFID account administration."""

from __future__ import annotations

import logging
from decimal import Decimal

from fastapi import APIRouter, Body, Depends, Header, Query, Request, Response
from pydantic import BaseModel, EmailStr, Field

from ..domain.account import RFIDAccount
from ..domain.contracts import CallerIdentity, CreateRFIDAccountInput
from ..domain.service import DEFAULT_LIMIT, DEFAULT_OFFSET, RFIDAccountService
from ..security.tokens import ensure_role, identity_from_authorization

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin_rfid/api/v1")


class RFIDAccountResponse(BaseModel):
    """Serialised representation of a decrypted `RFIDAccount`."""

    row_number: int | None = None
    id: int
    name: str | None
    address: str | None
    email_address: str | None
    mobile_number: str | None
    vehicle_plate_number: str | None
    vehicle_brand: str | None
    vehicle_model: str | None
    username: str
    rfid_card_tag: str
    balance: Decimal
    user_status: str

    @classmethod
    def from_domain(cls, account: RFIDAccount) -> "RFIDAccountResponse":
        """Build a response model from the domain record."""
        return cls(
            row_number=account.row_number,
            id=account.id,
            name=account.name,
            address=account.address,
            email_address=account.email_address,
            mobile_number=account.mobile_number,
            vehicle_plate_number=account.vehicle_plate_number,
            vehicle_brand=account.vehicle_brand,
            vehicle_model=account.vehicle_model,
            username=account.username,
            rfid_card_tag=account.rfid_card_tag,
            balance=account.balance,
            user_status=account.user_status,
        )


class CreateRFIDAccountRequest(BaseModel):
    """Payload accepted when registering an RFID account."""

    name: str = Field(..., min_length=1, max_length=100)
    address: str = Field(..., min_length=1, max_length=255)
    email_address: EmailStr
    mobile_number: str = Field(..., pattern=r"^(09|\+639)\d{9}$")
    vehicle_plate_number: str = Field(..., min_length=1, max_length=20)
    vehicle_brand: str = Field(..., min_length=1, max_length=50)
    vehicle_model: str = Field(..., min_length=1, max_length=50)
    username: str = Field(..., min_length=4, max_length=50)
    rfid: str = Field(..., min_length=1, max_length=64)


class AccountStatusRequest(BaseModel):
    """Body of a status transition; the value itself is checked by the service."""

    status: str


class AccountListEnvelope(BaseModel):
    status: int = 200
    data: list[RFIDAccountResponse]


class AccountEnvelope(BaseModel):
    status: int = 200
    data: RFIDAccountResponse


class StatusEnvelope(BaseModel):
    status: int = 200
    data: str


def get_service(request: Request) -> RFIDAccountService:
    """Resolve the `RFIDAccountService` stored on the FastAPI application state."""
    service: RFIDAccountService = request.app.state.rfid_account_service
    return service


def get_identity(authorization: str | None = Header(default=None)) -> CallerIdentity:
    """Authenticate the caller and require a role allowed to manage RFID accounts."""
    return ensure_role(identity_from_authorization(authorization))


def _set_self_link(request: Request, response: Response) -> None:
    response.headers["Link"] = f'<{request.url}>; rel="self"'


@router.get("/users", response_model=AccountListEnvelope)
def list_users(
    request: Request,
    response: Response,
    limit: int = Query(default=DEFAULT_LIMIT, ge=0),
    offset: int = Query(default=DEFAULT_OFFSET, ge=0),
    identity: CallerIdentity = Depends(get_identity),
    service: RFIDAccountService = Depends(get_service),
) -> AccountListEnvelope:
    """List the caller's RFID accounts one page at a time."""
    accounts = service.list_accounts(identity.user_id, limit, offset)
    _set_self_link(request, response)
    return AccountListEnvelope(data=[RFIDAccountResponse.from_domain(a) for a in accounts])


@router.get("/users/search", response_model=AccountListEnvelope)
def search_users(
    request: Request,
    response: Response,
    filter: str = Query(..., min_length=1),
    limit: int = Query(default=DEFAULT_LIMIT, ge=0),
    offset: int = Query(default=DEFAULT_OFFSET, ge=0),
    identity: CallerIdentity = Depends(get_identity),
    service: RFIDAccountService = Depends(get_service),
) -> AccountListEnvelope:
    """Search the caller's accounts by RFID tag prefix or exact mobile number."""
    accounts = service.search_accounts(identity.user_id, filter, limit, offset)
    _set_self_link(request, response)
    return AccountListEnvelope(data=[RFIDAccountResponse.from_domain(a) for a in accounts])


@router.get("/users/{user_id}", response_model=AccountEnvelope)
def get_user(
    user_id: int,
    identity: CallerIdentity = Depends(get_identity),
    service: RFIDAccountService = Depends(get_service),
) -> AccountEnvelope:
    """Retrieve a single RFID account owned by the caller."""
    account = service.get_account(identity.user_id, user_id)
    return AccountEnvelope(data=RFIDAccountResponse.from_domain(account))


@router.post("/users", response_model=StatusEnvelope)
def create_user(
    payload: CreateRFIDAccountRequest,
    identity: CallerIdentity = Depends(get_identity),
    service: RFIDAccountService = Depends(get_service),
) -> StatusEnvelope:
    """Register an RFID account and email its one-time password."""
    result = service.create_account(
        identity.user_id,
        CreateRFIDAccountInput(
            name=payload.name,
            address=payload.address,
            email_address=str(payload.email_address),
            mobile_number=payload.mobile_number,
            vehicle_plate_number=payload.vehicle_plate_number,
            vehicle_brand=payload.vehicle_brand,
            vehicle_model=payload.vehicle_model,
            username=payload.username,
            rfid_card_tag=payload.rfid,
        ),
    )
    logger.info("create rfid account request by user %s: %s", identity.user_id, result)
    return StatusEnvelope(data=result)


@router.patch("/users/{user_id}", response_model=StatusEnvelope)
def update_user(
    user_id: int,
    data: dict[str, str] = Body(...),
    identity: CallerIdentity = Depends(get_identity),
    service: RFIDAccountService = Depends(get_service),
) -> StatusEnvelope:
    """Update a subset of an account's attributes."""
    result = service.update_account_fields(identity.user_id, user_id, data)
    return StatusEnvelope(data=result)


@router.patch("/users/{user_id}/status", response_model=StatusEnvelope)
def update_user_status(
    user_id: int,
    payload: AccountStatusRequest,
    identity: CallerIdentity = Depends(get_identity),
    service: RFIDAccountService = Depends(get_service),
) -> StatusEnvelope:
    """Activate or deactivate an account."""
    result = service.set_account_status(identity.user_id, user_id, payload.status)
    return StatusEnvelope(data=result)
