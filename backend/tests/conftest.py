"""Pytest configuration and fixtures."""

import asyncio
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.db.models  # noqa: F401  (register ORM models with Base.metadata)
from app.db.repositories.call import CallRepository
from app.db.session import Base
from app.main import app
from app.models.call import Call, CallCreate, CallStatus
from app.models.proposal import Actor, ActorRole
from app.services.lifecycle import ProposalLocks, ProposalService
from app.services.notifications import ProposalEvent, drain_events
from app.services.storage.documents import LocalDocumentStore


def pytest_configure(config):
    """Pytest 설정."""
    import sys

    # asyncio event loop policy 설정
    if sys.platform == "darwin" or sys.platform == "linux":
        asyncio.set_event_loop_policy(asyncio.DefaultEventLoopPolicy())


# =============================================================================
# Database Fixtures
# =============================================================================
@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine]:
    """
    테스트용 인메모리 DB 엔진.

    StaticPool을 사용하므로 같은 엔진에서 만든 세션들은 하나의 DB를 공유합니다.
    """
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession]:
    """
    테스트용 DB 세션.

    각 테스트 함수마다 독립된 인메모리 DB를 사용합니다.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


# =============================================================================
# Call Fixtures
# =============================================================================
async def _seed_call(db: AsyncSession, **overrides) -> Call:
    data = {
        "title": "Open Science Fund 2026",
        "description": "Funding for open research infrastructure",
        "deadline": datetime.now() + timedelta(days=30),
        "status": CallStatus.PUBLISHED,
        "budget_min": 1_000,
        "budget_max": 50_000,
    }
    data.update(overrides)
    call = await CallRepository(db).create(CallCreate(**data))
    await db.commit()
    return call


@pytest.fixture
async def open_call(db_session: AsyncSession) -> Call:
    """공모 중인 Call (마감 30일 전)."""
    return await _seed_call(db_session, id="call-open")


@pytest.fixture
async def closed_call(db_session: AsyncSession) -> Call:
    """마감된 Call."""
    return await _seed_call(db_session, id="call-closed", status=CallStatus.CLOSED)


@pytest.fixture
async def expired_call(db_session: AsyncSession) -> Call:
    """PUBLISHED but past its deadline."""
    return await _seed_call(
        db_session,
        id="call-expired",
        deadline=datetime.now() - timedelta(days=1),
    )


# =============================================================================
# Actor Fixtures
# =============================================================================
@pytest.fixture
def researcher() -> Actor:
    return Actor(id="researcher-1", role=ActorRole.RESEARCHER)


@pytest.fixture
def other_researcher() -> Actor:
    return Actor(id="researcher-2", role=ActorRole.RESEARCHER)


@pytest.fixture
def admin() -> Actor:
    return Actor(id="admin-1", role=ActorRole.ADMIN)


# =============================================================================
# Service Fixtures
# =============================================================================
class RecordingNotifier:
    """Collects events instead of delivering them."""

    def __init__(self) -> None:
        self.events: list[ProposalEvent] = []

    async def notify(self, event: ProposalEvent) -> None:
        self.events.append(event)


class FailingNotifier:
    """Every delivery fails."""

    def __init__(self) -> None:
        self.calls = 0

    async def notify(self, event: ProposalEvent) -> None:
        self.calls += 1
        raise ConnectionError("notification broker unavailable")


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def failing_notifier() -> FailingNotifier:
    return FailingNotifier()


@pytest.fixture(autouse=True)
async def _settle_notifications():
    """Background deliveries never outlive the test that scheduled them."""
    yield
    await drain_events()


@pytest.fixture
def locks() -> ProposalLocks:
    """Lock registry private to one test."""
    return ProposalLocks()


@pytest.fixture
def proposal_service(db_session: AsyncSession, notifier, locks) -> ProposalService:
    """ProposalService fixture."""
    return ProposalService(db_session, notifier=notifier, locks=locks)


# =============================================================================
# Repository Fixtures
# =============================================================================
@pytest.fixture
def proposal_repo(db_session: AsyncSession):
    """ProposalRepository fixture."""
    from app.db.repositories.proposal import ProposalRepository

    return ProposalRepository(db_session)


@pytest.fixture
def revision_repo(db_session: AsyncSession):
    """RevisionRepository fixture."""
    from app.db.repositories.revision import RevisionRepository

    return RevisionRepository(db_session)


@pytest.fixture
def status_change_repo(db_session: AsyncSession):
    """StatusChangeRepository fixture."""
    from app.db.repositories.status_change import StatusChangeRepository

    return StatusChangeRepository(db_session)


# =============================================================================
# Document Store Fixtures
# =============================================================================
@pytest.fixture
def document_store(tmp_path) -> LocalDocumentStore:
    """tmp_path 아래에 저장하는 문서 저장소."""
    return LocalDocumentStore(
        base_dir=str(tmp_path),
        allowed_extensions=[".pdf", ".docx"],
        max_bytes=1024,
    )


# =============================================================================
# HTTP Client Fixtures
# =============================================================================
@pytest.fixture(scope="function")
async def clean_client(db_session: AsyncSession, document_store) -> AsyncGenerator[AsyncClient]:
    """
    Integration 테스트용 비동기 HTTP 클라이언트.

    인메모리 DB와 tmp_path 문서 저장소를 사용하며, 각 테스트 후 자동으로 정리됩니다.
    """
    from app.api.deps import get_db, get_documents

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_documents] = lambda: document_store

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
        await db_session.rollback()


@pytest.fixture
def headers_for():
    """Build the gateway headers identifying an actor."""

    def _headers(actor: Actor) -> dict[str, str]:
        return {"X-Actor-Id": actor.id, "X-Actor-Role": actor.role.value}

    return _headers
