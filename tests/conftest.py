import os
import tempfile
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

# Set environment variables BEFORE any imports that might use settings
# Use a temporary directory for test database to avoid permission issues
_test_db_dir = tempfile.mkdtemp()
_test_db_path = os.path.join(_test_db_dir, "test_car_rental.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_test_db_path}"
os.environ["SECRET_KEY"] = "test-secret-key-min-32-characters-long-for-testing"
os.environ["ALGORITHM"] = "HS256"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["FIRST_ADMIN_EMAIL"] = "admin@test.example.com"
os.environ["FIRST_ADMIN_PASSWORD"] = "AdminTest123!"

import fakeredis
import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session

from app.main import app
from app.core.cache import rental_cache
from app.core.security import create_access_token, get_password_hash
from app.db.models.user import User as UserModel
from app.db.models.role import Role as RoleModel
from app.domain.rental_rules import RentalRequest
from app.errors import NotFoundError, OpenRentalConflictError


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test and run migrations."""
    temp_db_dir = tempfile.mkdtemp()
    test_db_path = os.path.join(temp_db_dir, "test.db")
    test_db_url = f"sqlite:///{test_db_path}"

    test_engine = create_engine(
        test_db_url,
        connect_args={"check_same_thread": False},
        poolclass=None,  # Don't use connection pooling for SQLite
    )

    # Enable WAL mode to reduce locking issues
    @event.listens_for(test_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_engine
    )

    # Run Alembic migrations to set up the database schema and seed data
    alembic_cfg = Config("alembic.ini")
    alembic_cfg.set_main_option("sqlalchemy.url", test_db_url)
    command.upgrade(alembic_cfg, "head")

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        test_engine.dispose()

        for suffix in ["", "-wal", "-shm"]:
            path = f"{test_db_path}{suffix}"
            if os.path.exists(path):
                os.remove(path)
        if os.path.exists(temp_db_dir):
            os.rmdir(temp_db_dir)


@pytest.fixture(scope="function")
def redis_client():
    """In-process Redis, empty for each test."""
    return fakeredis.FakeRedis(server=fakeredis.FakeServer())


@pytest.fixture(autouse=True)
def rental_cache_redis(redis_client, monkeypatch):
    """Back the rental read cache with a fresh Redis per test (ids repeat across test databases)."""
    monkeypatch.setattr(rental_cache, "_redis", redis_client)
    return redis_client


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database dependency override."""

    def override_get_db():
        yield db_session

    from app.api.deps import get_db

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session to match test naming conventions."""
    return db_session


def _create_user_with_role(db: Session, email: str, name: str, password: str, role_name: str) -> dict:
    role = db.query(RoleModel).filter(RoleModel.name == role_name).first()
    if not role:
        raise RuntimeError(f"{role_name} role not found")

    user = UserModel(
        email=email,
        name=name,
        password_hash=get_password_hash(password),
        role_id=role.id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    return {
        "id": user.id,
        "email": user.email,
        "name": name,
        "password": password,
        "role_id": user.role_id,
    }


@pytest.fixture(scope="function")
def admin_user(db: Session) -> dict:
    """The admin user seeded by migration 002."""
    from app.repositories.user import get_user_by_email
    from app.core.config import settings

    user = get_user_by_email(db, settings.first_admin_email)
    if not user:
        raise RuntimeError("Admin user not found. Check migration 002.")

    return {
        "id": user.id,
        "email": user.email,
        "password": settings.first_admin_password,
        "role_id": user.role_id,
    }


@pytest.fixture(scope="function")
def admin_token(admin_user: dict) -> str:
    return create_access_token(admin_user["id"])


@pytest.fixture(scope="function")
def employee_user_dict(db: Session) -> dict:
    return _create_user_with_role(
        db, "employee@example.com", "Test Employee", "EmployeePass123!", "employee"
    )


@pytest.fixture(scope="function")
def employee_token(employee_user_dict: dict) -> str:
    return create_access_token(employee_user_dict["id"])


@pytest.fixture(scope="function")
def customer_user_dict(db: Session) -> dict:
    return _create_user_with_role(
        db, "customer@example.com", "Test Customer", "CustomerPass123!", "customer"
    )


@pytest.fixture(scope="function")
def customer_token(customer_user_dict: dict) -> str:
    return create_access_token(customer_user_dict["id"])


@pytest.fixture(scope="function")
def another_customer_user_dict(db: Session) -> dict:
    return _create_user_with_role(
        db, "customer2@example.com", "Second Customer", "Customer2Pass123!", "customer"
    )


@pytest.fixture(scope="function")
def another_customer_token(another_customer_user_dict: dict) -> str:
    return create_access_token(another_customer_user_dict["id"])


@pytest.fixture(scope="function")
def car(db: Session):
    """Create a car for testing."""
    from app.repositories.car import create_car

    return create_car(
        db, brand="Toyota", model="Corolla", model_year=2022, daily_price=Decimal("45.00")
    )


@pytest.fixture(scope="function")
def another_car(db: Session):
    from app.repositories.car import create_car

    return create_car(
        db, brand="Renault", model="Clio", model_year=2021, daily_price=Decimal("35.50")
    )


# ============================================================================
# IN-MEMORY RENTAL REPOSITORY (rule engine unit tests)
# ============================================================================


@dataclass
class StoredRental:
    id: int
    car_id: int
    customer_id: int
    rent_date: datetime
    return_date: datetime | None = None


class InMemoryRentalRepository:
    """Rental repository keeping rows in a dict, honouring the conditional insert contract.

    ``on_open_lookup`` is called on every find_open_for_car, letting tests
    line up concurrent callers right after their availability read.
    """

    def __init__(self):
        self.rows: dict[int, StoredRental] = {}
        self.on_open_lookup = None
        self._next_id = 1
        self._lock = threading.Lock()

    def seed(self, car_id: int, *, closed: bool, customer_id: int = 1) -> StoredRental:
        rental = StoredRental(
            id=self._next_id,
            car_id=car_id,
            customer_id=customer_id,
            rent_date=datetime(2025, 1, self._next_id, tzinfo=timezone.utc),
            return_date=datetime(2025, 2, self._next_id, tzinfo=timezone.utc) if closed else None,
        )
        self.rows[rental.id] = rental
        self._next_id += 1
        return rental

    def open_rentals(self, car_id: int) -> list[StoredRental]:
        return [r for r in self.rows.values() if r.car_id == car_id and r.return_date is None]

    def get_by_id(self, rental_id):
        return self.rows.get(rental_id)

    def find_open_for_car(self, car_id):
        found = next(iter(self.open_rentals(car_id)), None)
        if self.on_open_lookup is not None:
            self.on_open_lookup()
        return found

    def list_for_car(self, car_id):
        return sorted((r for r in self.rows.values() if r.car_id == car_id), key=lambda r: r.id)

    def insert_open(self, request: RentalRequest):
        with self._lock:
            if self.open_rentals(request.car_id):
                raise OpenRentalConflictError(request.car_id)
            rental = StoredRental(
                id=self._next_id,
                car_id=request.car_id,
                customer_id=request.customer_id,
                rent_date=request.rent_date,
            )
            self.rows[rental.id] = rental
            self._next_id += 1
            return rental

    def update(self, rental, **fields):
        if rental.id not in self.rows:
            raise NotFoundError("Rental not found")
        for name, value in fields.items():
            setattr(rental, name, value)
        return rental

    def close_open(self, rental, return_date):
        with self._lock:
            stored = self.rows.get(rental.id)
            if stored is None or stored.return_date is not None:
                return None
            stored.return_date = return_date
            return stored

    def delete(self, rental):
        del self.rows[rental.id]


@pytest.fixture(scope="function")
def memory_repo() -> InMemoryRentalRepository:
    return InMemoryRentalRepository()
