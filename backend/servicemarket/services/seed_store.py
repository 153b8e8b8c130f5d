import json
import logging
import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional
from uuid import uuid4

from servicemarket.models import AvailabilitySlot, Listing, ListingLocation, Profile, ProviderView, User

logger = logging.getLogger(__name__)

USER_ROLES = {"CUSTOMER", "PROVIDER"}

SEED_TABLES = ("users", "profiles", "listings", "availability_slots")


class SeedStoreError(ValueError):
    """Base class for seed-store errors."""


class SeedStoreValidationError(SeedStoreError):
    pass


class SeedStoreNotFoundError(SeedStoreError):
    pass


class SeedStoreClosedError(SeedStoreError):
    pass


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SeedStore:
    """SQLite persistence for seeded marketplace records.

    The store owns a single connection for its whole lifetime. Every create
    commits on its own, so rows written before a failure stay in place.
    """

    def __init__(self, db_path: str, read_only: bool = False) -> None:
        path = Path(db_path)
        self.read_only = read_only
        if read_only:
            if db_path == ":memory:" or not path.is_file():
                raise SeedStoreNotFoundError(f"Seed database not found: {db_path}")
        elif db_path != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = db_path if db_path == ":memory:" else str(path)
        self._lock = Lock()
        self._conn: Optional[sqlite3.Connection] = self._connect()
        if not read_only:
            self._init_db()

    def __enter__(self) -> "SeedStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._conn is None

    def _connect(self) -> sqlite3.Connection:
        if self.read_only:
            # mode=ro never creates the file or the schema
            uri = f"{Path(self.db_path).resolve().as_uri()}?mode=ro"
            conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
        else:
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise SeedStoreClosedError("Seed store connection is closed")
        return self._conn

    def _init_db(self) -> None:
        with self._lock:
            conn = self._require_conn()
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL,
                    role TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS profiles (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL UNIQUE REFERENCES users(id),
                    display_name TEXT NOT NULL,
                    bio TEXT NOT NULL,
                    gst INTEGER NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS listings (
                    id TEXT PRIMARY KEY,
                    provider_id TEXT NOT NULL REFERENCES profiles(id),
                    title TEXT NOT NULL,
                    category TEXT NOT NULL,
                    description TEXT NOT NULL,
                    price_per_hour INTEGER NOT NULL,
                    location_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS availability_slots (
                    id TEXT PRIMARY KEY,
                    listing_id TEXT NOT NULL REFERENCES listings(id),
                    starts_at TEXT NOT NULL,
                    ends_at TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.commit()

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        logger.debug("Seed store closed: %s", self.db_path)

    def _insert(self, sql: str, params: tuple) -> None:
        with self._lock:
            conn = self._require_conn()
            conn.execute(sql, params)
            conn.commit()

    def create_user(self, *, email: str, role: str) -> str:
        if role not in USER_ROLES:
            raise SeedStoreValidationError(f"Invalid role: {role}")
        if not email.strip():
            raise SeedStoreValidationError("Email is required")
        user_id = f"usr_{uuid4().hex[:12]}"
        now_iso = _utc_now_iso()
        self._insert(
            "INSERT INTO users (id, email, role, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
            (user_id, email.strip(), role, now_iso, now_iso),
        )
        return user_id

    def create_profile(self, *, user_id: str, display_name: str, bio: str, gst: bool) -> str:
        profile_id = f"prf_{uuid4().hex[:12]}"
        now_iso = _utc_now_iso()
        self._insert(
            """
            INSERT INTO profiles (id, user_id, display_name, bio, gst, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (profile_id, user_id, display_name, bio, 1 if gst else 0, now_iso, now_iso),
        )
        return profile_id

    def create_listing(
        self,
        *,
        profile_id: str,
        title: str,
        category: str,
        description: str,
        price_per_hour: int,
        location: ListingLocation,
    ) -> str:
        if int(price_per_hour) <= 0:
            raise SeedStoreValidationError("price_per_hour must be greater than 0")
        listing_id = f"lst_{uuid4().hex[:12]}"
        now_iso = _utc_now_iso()
        self._insert(
            """
            INSERT INTO listings (
                id, provider_id, title, category, description, price_per_hour,
                location_json, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                listing_id,
                profile_id,
                title,
                category,
                description,
                int(price_per_hour),
                json.dumps(location.model_dump()),
                now_iso,
                now_iso,
            ),
        )
        return listing_id

    def create_availability_slot(self, *, listing_id: str, starts_at: datetime, ends_at: datetime) -> str:
        if ends_at <= starts_at:
            raise SeedStoreValidationError("ends_at must be after starts_at")
        slot_id = f"av_{uuid4().hex[:12]}"
        now_iso = _utc_now_iso()
        self._insert(
            """
            INSERT INTO availability_slots (id, listing_id, starts_at, ends_at, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (slot_id, listing_id, starts_at.isoformat(), ends_at.isoformat(), now_iso, now_iso),
        )
        return slot_id

    def _fetchall(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        with self._lock:
            return self._require_conn().execute(sql, params).fetchall()

    def _fetchone(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        with self._lock:
            return self._require_conn().execute(sql, params).fetchone()

    def count(self, table: str) -> int:
        if table not in SEED_TABLES:
            raise SeedStoreValidationError(f"Unknown table: {table}")
        row = self._fetchone(f"SELECT COUNT(*) AS total FROM {table}")
        return int(row["total"]) if row else 0

    def list_users(self, role: Optional[str] = None) -> List[User]:
        if role is None:
            rows = self._fetchall("SELECT * FROM users ORDER BY rowid")
        else:
            rows = self._fetchall("SELECT * FROM users WHERE role = ? ORDER BY rowid", (role,))
        return [User(**dict(row)) for row in rows]

    def get_profile_for_user(self, user_id: str) -> Optional[Profile]:
        row = self._fetchone("SELECT * FROM profiles WHERE user_id = ?", (user_id,))
        return self._row_to_profile(row) if row else None

    def list_providers(self) -> List[ProviderView]:
        return [
            ProviderView(user=user, profile=self.get_profile_for_user(user.id))
            for user in self.list_users(role="PROVIDER")
        ]

    def list_listings(
        self,
        category: Optional[str] = None,
        suburb: Optional[str] = None,
        profile_id: Optional[str] = None,
    ) -> List[Listing]:
        clauses: List[str] = []
        params: List[Any] = []
        if category:
            clauses.append("LOWER(category) = ?")
            params.append(category.strip().lower())
        if profile_id:
            clauses.append("provider_id = ?")
            params.append(profile_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._fetchall(f"SELECT * FROM listings {where} ORDER BY rowid", tuple(params))
        listings = [self._row_to_listing(row) for row in rows]
        if suburb:
            needle = suburb.strip().lower()
            listings = [item for item in listings if item.location.address.lower() == needle]
        return listings

    def get_listing(self, listing_id: str) -> Listing:
        row = self._fetchone("SELECT * FROM listings WHERE id = ?", (listing_id,))
        if not row:
            raise SeedStoreNotFoundError("Listing not found")
        return self._row_to_listing(row)

    def list_slots(self, listing_id: str) -> List[AvailabilitySlot]:
        rows = self._fetchall(
            "SELECT * FROM availability_slots WHERE listing_id = ? ORDER BY starts_at, rowid",
            (listing_id,),
        )
        return [AvailabilitySlot(**dict(row)) for row in rows]

    def _row_to_profile(self, row: sqlite3.Row) -> Profile:
        data: Dict[str, Any] = dict(row)
        data["gst"] = bool(data["gst"])
        return Profile(**data)

    def _row_to_listing(self, row: sqlite3.Row) -> Listing:
        data: Dict[str, Any] = dict(row)
        data["location"] = ListingLocation(**json.loads(data.pop("location_json")))
        return Listing(**data)


def default_db_path() -> str:
    default_db = str(Path(__file__).resolve().parents[2] / "data" / "marketplace.sqlite3")
    return os.getenv("SEED_DB_PATH", default_db)
