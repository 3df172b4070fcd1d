"""Database repository for RFID driver accounts."""

from __future__ import annotations

from typing import Any, Mapping

from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from .domain.account import RFIDAccount
from .domain.contracts import CreateRFIDAccountInput

# Every read and write is restricted to the CPO owner that the caller's user id resolves to.
_TENANT_SCOPE = "cpo_owner_id = (SELECT id FROM cpo_owners WHERE user_id = %s)"

_ACCOUNT_COLUMNS = """
    id, cpo_owner_id, name, address, email_address, mobile_number,
    vehicle_plate_number, vehicle_brand, vehicle_model, username,
    rfid_card_tag, balance, user_status
"""

UPDATABLE_COLUMNS = frozenset(
    {
        "name",
        "address",
        "email_address",
        "mobile_number",
        "vehicle_plate_number",
        "vehicle_brand",
        "vehicle_model",
        "username",
    }
)


def escape_like(value: str) -> str:
    """Escape LIKE metacharacters so ``value`` is matched literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class AccountUpdateBuilder:
    """Accumulates column assignments for a single parameterized UPDATE."""

    def __init__(self) -> None:
        self._assignments: list[tuple[str, Any]] = []

    def set(self, column: str, value: Any) -> "AccountUpdateBuilder":
        if column not in UPDATABLE_COLUMNS:
            raise ValueError(f"column {column!r} cannot be updated")
        self._assignments.append((column, value))
        return self

    @property
    def assignments(self) -> list[tuple[str, Any]]:
        return list(self._assignments)

    def build(self, owner_user_id: int, account_id: int) -> tuple[sql.Composed, list[Any]]:
        """Return the UPDATE statement and its parameters in placeholder order."""
        if not self._assignments:
            raise ValueError("no assignments to apply")
        set_clause = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(column)) for column, _ in self._assignments
        )
        query = sql.SQL("UPDATE rfid_users SET {} WHERE id = %s AND " + _TENANT_SCOPE).format(
            set_clause
        )
        params = [value for _, value in self._assignments]
        params.extend([account_id, owner_user_id])
        return query, params


class RFIDAccountRepository:
    """Postgres-backed RFID account persistence.

    Values are stored and returned exactly as given; encryption is the
    service's concern. Storage errors propagate unmodified.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def list_accounts(self, owner_user_id: int, limit: int, offset: int) -> list[RFIDAccount]:
        """Return one page of the owner's accounts, newest first."""
        query = f"""
            SELECT ROW_NUMBER() OVER (ORDER BY id DESC) AS row_number, {_ACCOUNT_COLUMNS}
            FROM rfid_users
            WHERE {_TENANT_SCOPE}
            ORDER BY id DESC
            LIMIT %s OFFSET %s
        """
        return self._fetch_accounts(query, (owner_user_id, limit, offset))

    def search_accounts(
        self,
        owner_user_id: int,
        rfid_prefix: str,
        mobile_number_cipher: str,
        limit: int,
        offset: int,
    ) -> list[RFIDAccount]:
        """Return accounts whose RFID tag starts with ``rfid_prefix`` or whose
        stored mobile number equals ``mobile_number_cipher``."""
        query = f"""
            SELECT ROW_NUMBER() OVER (ORDER BY id DESC) AS row_number, {_ACCOUNT_COLUMNS}
            FROM rfid_users
            WHERE {_TENANT_SCOPE}
              AND (rfid_card_tag LIKE %s ESCAPE '\\' OR mobile_number = %s)
            ORDER BY id DESC
            LIMIT %s OFFSET %s
        """
        params = (
            owner_user_id,
            escape_like(rfid_prefix) + "%",
            mobile_number_cipher,
            limit,
            offset,
        )
        return self._fetch_accounts(query, params)

    def get_account(self, owner_user_id: int, account_id: int) -> RFIDAccount | None:
        """Fetch an account belonging to the owner or return ``None``."""
        query = f"""
            SELECT {_ACCOUNT_COLUMNS}
            FROM rfid_users
            WHERE id = %s AND {_TENANT_SCOPE}
        """
        rows = self._fetch_accounts(query, (account_id, owner_user_id))
        return rows[0] if rows else None

    def create_account(
        self,
        owner_user_id: int,
        payload: CreateRFIDAccountInput,
        password_hash: str,
    ) -> str:
        """Register an account through the atomic creation procedure.

        The procedure checks duplicate email, mobile, plate and username values
        and RFID card availability in one unit, and reports the outcome as a
        status token such as ``SUCCESS`` or ``RFID_ALREADY_OWNED``.
        """
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT status
                    FROM web_admin_add_rfid_account(
                        %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s
                    )
                    """,
                    (
                        owner_user_id,
                        payload.name,
                        payload.address,
                        payload.email_address,
                        payload.mobile_number,
                        payload.vehicle_plate_number,
                        payload.vehicle_brand,
                        payload.vehicle_model,
                        payload.username,
                        password_hash,
                        payload.rfid_card_tag,
                    ),
                )
                row = cur.fetchone()
                conn.commit()
        return str(row["status"]) if row else ""

    def update_account(
        self, owner_user_id: int, account_id: int, values: Mapping[str, Any]
    ) -> int:
        """Apply a partial update and return the affected row count."""
        builder = AccountUpdateBuilder()
        for column, value in values.items():
            builder.set(column, value)
        query, params = builder.build(owner_user_id, account_id)
        return self._execute(query, params)

    def update_account_status(self, owner_user_id: int, account_id: int, status: str) -> int:
        """Set ``user_status`` and return the affected row count (0 when unchanged)."""
        query = f"""
            UPDATE rfid_users
            SET user_status = %s
            WHERE id = %s AND {_TENANT_SCOPE} AND user_status IS DISTINCT FROM %s
        """
        return self._execute(query, (status, account_id, owner_user_id, status))

    def _fetch_accounts(self, query: str, params: tuple[Any, ...]) -> list[RFIDAccount]:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                return [self._map_record(row) for row in cur.fetchall()]

    def _execute(self, query: sql.Composable | str, params: Any) -> int:
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                affected = cur.rowcount
                conn.commit()
        return max(affected, 0)

    def _map_record(self, row: Mapping[str, Any]) -> RFIDAccount:
        """Convert a raw database row into the ``RFIDAccount`` dataclass."""
        return RFIDAccount(
            id=row["id"],
            cpo_owner_id=row["cpo_owner_id"],
            name=row["name"],
            address=row["address"],
            email_address=row["email_address"],
            mobile_number=row["mobile_number"],
            vehicle_plate_number=row["vehicle_plate_number"],
            vehicle_brand=row["vehicle_brand"],
            vehicle_model=row["vehicle_model"],
            username=row["username"],
            rfid_card_tag=row["rfid_card_tag"],
            balance=row["balance"],
            user_status=row["user_status"],
            row_number=row.get("row_number"),
        )
