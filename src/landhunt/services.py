"""Service container: the clients a pipeline run needs, built once per process.

The API lifespan and the CLI construct one Services instance and pass it
into every pipeline call. Tests build their own with fakes.
"""

import logging
from dataclasses import dataclass

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine

from landhunt.config import Settings
from landhunt.retrieval.llm import CompletionClient
from landhunt.storage.blob import BlobStorage
from landhunt.storage.db import create_engine, create_session_factory
from landhunt.storage.repository import EnrichmentStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    store: EnrichmentStore
    llm: CompletionClient
    blob: BlobStorage
    http: httpx.AsyncClient
    engine: AsyncEngine | None = None

    async def aclose(self) -> None:
        await self.llm.aclose()
        await self.blob.aclose()
        await self.http.aclose()
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("Services closed")


def build_services(settings: Settings) -> Services:
    engine = create_engine(settings)
    store = EnrichmentStore(create_session_factory(engine), dialect_name=engine.dialect.name)
    return Services(
        settings=settings,
        store=store,
        llm=CompletionClient.from_settings(settings),
        blob=BlobStorage.from_settings(settings),
        http=httpx.AsyncClient(timeout=settings.fetch_timeout_s),
        engine=engine,
    )
