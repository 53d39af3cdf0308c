import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Set test environment variables before importing searchsort modules
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("TABLE_PREFIX", "")
os.environ.setdefault("RELEVANCE_FIELD", "relevance")


@pytest.fixture
def users_table():
    from tests.models import User

    return User.__table__


@pytest.fixture
def authors_table():
    from tests.models import Author

    return Author.__table__


@pytest_asyncio.fixture(scope="function")
async def test_db() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async session on a fresh in-memory SQLite database.

    Each test gets its own engine with all tables created and seeded.
    """
    from tests.models import Author, Base, Book, User

    engine = create_async_engine("sqlite+aiosqlite://", echo=False)
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        session.add_all(
            [
                User(id=1, name="John", bio="jazz", active=True),
                User(id=2, name="John Smith", bio="plays piano", active=True),
                User(id=3, name="Mary", bio="knows john", active=True),
                User(id=4, name="Bob", bio="likes hiking", active=False),
                Author(id=1, name="Tolkien"),
                Author(id=2, name="Lewis"),
                Book(id=1, author_id=1, title="The Hobbit", published=True),
                Book(id=2, author_id=1, title="Silmarillion", published=False),
                Book(id=3, author_id=2, title="Narnia", published=True),
            ]
        )
        await session.commit()

        yield session
        await session.rollback()

    await engine.dispose()
