"""
Chemical Store - persistence adapter for the chemicals table

Every mutating call reports a StoreResult. Local records are only replaced
from a fresh listing after a successful change, so a failed call leaves them
exactly as they were.
"""

import inspect
import logging
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from thermodash.core.config import settings
from thermodash.core.database import async_session_maker
from thermodash.models.chemical import Chemical

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[list[dict]], Awaitable[None] | None]


class ChemicalPayload(BaseModel):
    """Chemical form as posted by the dashboard (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = Field(default=None, max_length=32)
    chem_name: str = Field(alias="chemName", min_length=1, max_length=100)
    formula: str = Field(min_length=1, max_length=50)
    boiling_point: float = Field(alias="boilingPoint")
    freezing_point: float = Field(alias="freezingPoint")
    hazard_level: Literal["Low", "Medium", "High"] = Field(alias="hazardLevel")
    notes: str = Field(default="", max_length=1000)


@dataclass
class StoreResult:
    is_ok: bool
    record: dict | None = None
    error: str | None = None


class ChemicalStore:
    """create / update / delete / list against the database, with change notifications."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession] | None = None,
        max_records: int | None = None,
    ):
        self._session_maker = session_maker or async_session_maker
        self.max_records = settings.max_chemicals if max_records is None else max_records
        self._records: list[dict] = []
        self._handler: ChangeHandler | None = None

    @property
    def records(self) -> list[dict]:
        return list(self._records)

    async def init(self, handler: ChangeHandler | None = None) -> StoreResult:
        """Register the change handler and load the initial record set."""
        self._handler = handler
        try:
            await self._refresh()
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to initialize chemical store: {e}")
            return StoreResult(False, error="Failed to load chemicals")
        return StoreResult(True)

    async def list_records(self) -> list[dict]:
        async with self._session_maker() as session:
            result = await session.execute(select(Chemical).order_by(Chemical.id))
            return [chem.to_dict() for chem in result.scalars().all()]

    async def create(self, payload: ChemicalPayload) -> StoreResult:
        async with self._session_maker() as session:
            try:
                count = await session.scalar(select(func.count()).select_from(Chemical))
                if count >= self.max_records:
                    return StoreResult(
                        False,
                        error=f"Maximum limit of {self.max_records} chemicals reached. "
                              f"Please delete some chemicals first.",
                    )

                chemical = Chemical(record_id=payload.id or uuid.uuid4().hex)
                self._apply(chemical, payload)
                session.add(chemical)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"❌ Failed to create chemical: {e}")
                return StoreResult(False, error="Failed to save chemical")

        logger.info(f"🧪 Chemical added: {chemical.chem_name}")
        await self._refresh_after_change()
        return StoreResult(True, record=chemical.to_dict())

    async def update(self, backend_id: int, payload: ChemicalPayload) -> StoreResult:
        async with self._session_maker() as session:
            try:
                chemical = await session.get(Chemical, backend_id)
                if chemical is None:
                    return StoreResult(False, error="Chemical not found")

                self._apply(chemical, payload)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"❌ Failed to update chemical {backend_id}: {e}")
                return StoreResult(False, error="Failed to save chemical")

        logger.info(f"🧪 Chemical updated: {chemical.chem_name}")
        await self._refresh_after_change()
        return StoreResult(True, record=chemical.to_dict())

    async def delete(self, backend_id: int) -> StoreResult:
        async with self._session_maker() as session:
            try:
                chemical = await session.get(Chemical, backend_id)
                if chemical is None:
                    return StoreResult(False, error="Chemical not found")

                record = chemical.to_dict()
                await session.delete(chemical)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"❌ Failed to delete chemical {backend_id}: {e}")
                return StoreResult(False, error="Failed to delete chemical")

        logger.info(f"🗑️ Chemical deleted: {record['chemName']}")
        await self._refresh_after_change()
        return StoreResult(True, record=record)

    @staticmethod
    def _apply(chemical: Chemical, payload: ChemicalPayload) -> None:
        chemical.chem_name = payload.chem_name
        chemical.formula = payload.formula
        chemical.boiling_point = payload.boiling_point
        chemical.freezing_point = payload.freezing_point
        chemical.hazard_level = payload.hazard_level
        chemical.notes = payload.notes

    async def _refresh(self) -> None:
        self._records = await self.list_records()
        if self._handler is not None:
            result = self._handler(self.records)
            if inspect.isawaitable(result):
                await result

    async def _refresh_after_change(self) -> None:
        # The change itself is committed; a failed reload only delays the table update
        try:
            await self._refresh()
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to reload chemicals: {e}")
