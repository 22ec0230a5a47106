"""Shared test helpers: in-memory SQLite database, a controllable clock, seeded accounts."""

from datetime import UTC, datetime, timedelta

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import generate_opaque_id, hash_password
from app.core.tokens import TokenService
from app.models import Account, Base, Role

TEST_SECRET = "test-signing-secret-0123456789abcdef-0123"
OTHER_SECRET = "another-signing-secret-fedcba9876543210-xyz"
T0 = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)
DEFAULT_PASSWORD = "correct-horse-battery"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


def make_engine() -> Engine:
    """Fresh in-memory SQLite database with every table created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_token_service(clock: FakeClock, secret: str = TEST_SECRET) -> TokenService:
    return TokenService(secret, clock=clock)


def add_account(
    db: Session,
    email: str = "student@example.com",
    password: str = DEFAULT_PASSWORD,
    name: str = "Test Student",
    role: Role = Role.STUDENT,
    is_active: bool = True,
    is_approved: bool = True,
    created_at: datetime = T0,
) -> Account:
    """Insert an account directly, bypassing registration validation."""
    account = Account(
        id=generate_opaque_id(),
        email=email,
        password_hash=hash_password(password),
        name=name,
        role=role.value,
        is_active=is_active,
        is_approved=is_approved,
        created_at=created_at,
        updated_at=created_at,
    )
    db.add(account)
    db.commit()
    return account
