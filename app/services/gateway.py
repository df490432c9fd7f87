"""
Persistence Gateway
Narrow CRUD / upsert contract over companies, checklists, devices and device_progress.
Every call opens its own session, awaits the round trip and commits.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, delete, func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from app.core.exceptions import GatewayError
from app.models import Company, Checklist, Device, DeviceProgress
from app.services.change_feed import ChangeFeed

logger = logging.getLogger(__name__)

PROGRESS_TABLE = "device_progress"


class ChecklistGateway:
    """Data access for the checklist tracker"""

    def __init__(self, session_factory: async_sessionmaker, change_feed: ChangeFeed):
        self.session_factory = session_factory
        self.change_feed = change_feed

    def _fail(self, operation: str, error: Exception) -> GatewayError:
        logger.error(f"Gateway {operation} failed: {error}")
        return GatewayError(operation, error)

    # ------------------------------------------------------------------
    # companies
    # ------------------------------------------------------------------

    async def get_company_by_name(self, name: str) -> Optional[Company]:
        try:
            async with self.session_factory() as db:
                result = await db.execute(select(Company).where(Company.name == name))
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._fail("fetch company", e) from e

    async def create_company(self, name: str) -> Company:
        try:
            async with self.session_factory() as db:
                company = Company(name=name)
                db.add(company)
                await db.commit()
                await db.refresh(company)
                return company
        except SQLAlchemyError as e:
            raise self._fail("insert company", e) from e

    async def get_or_create_company(self, name: str) -> Company:
        """Ensure a company exists with the given name, return its row."""
        company = await self.get_company_by_name(name)
        if company:
            return company
        return await self.create_company(name)

    async def list_companies(self) -> List[Company]:
        try:
            async with self.session_factory() as db:
                result = await db.execute(select(Company).order_by(Company.name))
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise self._fail("fetch companies", e) from e

    async def delete_company(self, company_id: int):
        try:
            async with self.session_factory() as db:
                await db.execute(delete(Company).where(Company.id == company_id))
                await db.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete company", e) from e

    # ------------------------------------------------------------------
    # checklists
    # ------------------------------------------------------------------

    async def get_checklist_by_name(self, company_id: int, name: str) -> Optional[Checklist]:
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(Checklist)
                    .where(Checklist.company_id == company_id, Checklist.name == name)
                    .order_by(Checklist.id)
                    .limit(1)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._fail("fetch checklist", e) from e

    async def get_checklist(self, checklist_id: int) -> Optional[Checklist]:
        """Checklist by id with its company loaded."""
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(Checklist)
                    .where(Checklist.id == checklist_id)
                    .options(selectinload(Checklist.company))
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._fail("fetch checklist", e) from e

    async def create_checklist(self, company_id: int, name: str, year: Optional[int] = None) -> Checklist:
        try:
            async with self.session_factory() as db:
                checklist = Checklist(
                    company_id=company_id,
                    name=name,
                    year=year if year is not None else datetime.now().year,
                )
                db.add(checklist)
                await db.commit()
                await db.refresh(checklist)
                return checklist
        except SQLAlchemyError as e:
            raise self._fail("insert checklist", e) from e

    async def list_checklists(self) -> List[Checklist]:
        """All checklists with their company, ordered by checklist name."""
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(Checklist)
                    .options(selectinload(Checklist.company))
                    .order_by(Checklist.name, Checklist.id)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise self._fail("fetch checklists", e) from e

    async def list_checklists_for_company(self, company_id: int) -> List[Checklist]:
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(Checklist)
                    .where(Checklist.company_id == company_id)
                    .order_by(Checklist.year.desc(), Checklist.id)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise self._fail("fetch checklists for company", e) from e

    async def count_checklists_for_company(self, company_id: int) -> int:
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(func.count(Checklist.id)).where(Checklist.company_id == company_id)
                )
                return result.scalar_one()
        except SQLAlchemyError as e:
            raise self._fail("count checklists", e) from e

    async def delete_checklist(self, checklist_id: int):
        """Delete a checklist together with its devices and progress rows."""
        try:
            async with self.session_factory() as db:
                await db.execute(delete(DeviceProgress).where(DeviceProgress.checklist_id == checklist_id))
                await db.execute(delete(Device).where(Device.checklist_id == checklist_id))
                await db.execute(delete(Checklist).where(Checklist.id == checklist_id))
                await db.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete checklist", e) from e

    # ------------------------------------------------------------------
    # devices
    # ------------------------------------------------------------------

    async def list_devices(self, checklist_id: int) -> List[Device]:
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(Device).where(Device.checklist_id == checklist_id).order_by(Device.id)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise self._fail("fetch devices", e) from e

    async def insert_devices(self, checklist_id: int, rows: Iterable[Dict[str, Any]]) -> int:
        """Batch insert device rows. Returns the number inserted."""
        rows = [dict(row, checklist_id=checklist_id) for row in rows]
        if not rows:
            return 0
        try:
            async with self.session_factory() as db:
                db.add_all([Device(**row) for row in rows])
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Offending rows sample: {rows[:5]}")
            raise self._fail("insert devices", e) from e
        return len(rows)

    async def delete_devices(self, checklist_id: int):
        try:
            async with self.session_factory() as db:
                await db.execute(delete(Device).where(Device.checklist_id == checklist_id))
                await db.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete devices", e) from e

    # ------------------------------------------------------------------
    # device_progress
    # ------------------------------------------------------------------

    async def list_progress(self, checklist_id: int) -> List[Dict[str, Any]]:
        """Progress rows for a checklist, projected to {device_uid, checked, updated_at}."""
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(
                        DeviceProgress.device_uid,
                        DeviceProgress.checked,
                        DeviceProgress.updated_at,
                    ).where(DeviceProgress.checklist_id == checklist_id)
                )
                return [
                    {"device_uid": row.device_uid, "checked": row.checked, "updated_at": row.updated_at}
                    for row in result.all()
                ]
        except SQLAlchemyError as e:
            raise self._fail("fetch device progress", e) from e

    async def upsert_progress(
        self,
        checklist_id: int,
        device_uid: str,
        checked: bool,
        updated_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Insert or replace the progress row keyed by (checklist_id, device_uid).
        The new row image is published to the change feed after commit.
        """
        if updated_at is None:
            updated_at = datetime.now(timezone.utc)
        values = {
            "checklist_id": checklist_id,
            "device_uid": device_uid,
            "checked": checked,
            "updated_at": updated_at,
        }
        try:
            async with self.session_factory() as db:
                stmt = _insert_for(db)(DeviceProgress).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=["checklist_id", "device_uid"],
                    set_={
                        "checked": stmt.excluded.checked,
                        "updated_at": stmt.excluded.updated_at,
                    },
                )
                await db.execute(stmt)
                await db.commit()
        except SQLAlchemyError as e:
            raise self._fail("upsert device progress", e) from e

        row = dict(values, updated_at=updated_at.isoformat())
        self.change_feed.publish(PROGRESS_TABLE, row)
        return row


def _insert_for(db: AsyncSession):
    """Dialect-specific INSERT construct supporting ON CONFLICT."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise NotImplementedError(f"Upsert is not supported for dialect {dialect}")
