"""
Storage engine behind the document store.

Every collection lives in the single `stored_documents` table, so the schema
is created once at startup by `create_tables` and never migrated per
collection.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from campus_resources.configs.settings import settings


def _connect_args(url: str) -> dict:
    # aiosqlite hands the connection to a worker thread
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


engine = create_async_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args(settings.DATABASE_URL),
    echo=False
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False
)

Base = declarative_base()


async def create_tables(bind: AsyncEngine = engine) -> None:
    from campus_resources.models import StoredDocument  # noqa: F401  registers the table on Base

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
