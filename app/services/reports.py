"""
WasteCollect Server - Reports
Synchronous PDF generation stored through FileStorage
"""
import logging
from datetime import datetime
from typing import List, Tuple
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError, InvalidStateError, AuthorizationError
from app.models import Report, ReportStatus, ReportType, User, Role
from app.schemas.report import ReportConfig
from app.services import metrics
from app.services.caller import Caller
from app.utils.file_storage import FileStorage
from app.utils.report_generator import generate_report_pdf

logger = logging.getLogger(__name__)


async def _manager_municipality(db: AsyncSession, caller: Caller) -> str:
    manager = (await db.execute(select(User).where(User.id == caller.user_id))).scalar_one_or_none()
    if not manager or not manager.municipality_id:
        raise AuthorizationError("Manager is not attached to a municipality")
    return manager.municipality_id


async def generate_report(db: AsyncSession, caller: Caller, config: ReportConfig, storage: FileStorage) -> Report:
    """
    Builds the detailed report, renders it and stores the file. Rendering
    errors leave the report FAILED with the message recorded.
    """
    caller.require(Role.ADMIN, Role.MUNICIPAL_MANAGER)
    if config.end_date < config.start_date:
        raise ValidationError("end_date must not be before start_date", field="end_date")

    municipality_id = config.municipality_id
    if caller.role == Role.MUNICIPAL_MANAGER:
        own = await _manager_municipality(db, caller)
        if municipality_id and municipality_id != own:
            raise AuthorizationError("Managers can only report on their own municipality")
        municipality_id = own
    if config.report_type == ReportType.MUNICIPALITY and not municipality_id:
        raise ValidationError("municipality_id is required for a municipality report", field="municipality_id")
    if config.report_type == ReportType.GLOBAL:
        if caller.role != Role.ADMIN:
            raise AuthorizationError("Only administrators can generate global reports")
        municipality_id = None

    data = await metrics.detailed_report(
        db,
        municipality_id,
        config.start_date,
        config.end_date,
        days_threshold=config.days_threshold,
        min_pending_requests=config.min_pending_requests,
    )

    report = Report(
        title=config.title or f"{data.municipality_name} report {config.start_date:%Y-%m-%d} - {config.end_date:%Y-%m-%d}",
        report_type=config.report_type.value,
        status=ReportStatus.GENERATING.value,
        municipality_id=municipality_id,
        start_date=config.start_date,
        end_date=config.end_date,
        created_by_id=caller.user_id,
    )
    db.add(report)
    await db.flush()

    try:
        pdf = await generate_report_pdf(report.title, data)
        report.file_path = storage.store(pdf, f"report_{report.id}.pdf")
        report.status = ReportStatus.COMPLETED.value
    except (OSError, ValueError) as e:
        logger.exception(f"Report {report.id} failed")
        report.status = ReportStatus.FAILED.value
        report.error_message = str(e)
    report.completed_at = datetime.utcnow()
    await db.flush()

    logger.info(f"Report {report.id} {report.status}")
    return report


async def list_reports(db: AsyncSession, caller: Caller) -> List[Report]:
    caller.require(Role.ADMIN, Role.MUNICIPAL_MANAGER)
    statement = select(Report)
    if caller.role == Role.MUNICIPAL_MANAGER:
        statement = statement.where(Report.municipality_id == await _manager_municipality(db, caller))
    result = await db.execute(statement.order_by(Report.created_at.desc()))
    return list(result.scalars().all())


async def get_report(db: AsyncSession, caller: Caller, report_id: str) -> Report:
    caller.require(Role.ADMIN, Role.MUNICIPAL_MANAGER)
    report = (await db.execute(select(Report).where(Report.id == report_id))).scalar_one_or_none()
    if not report:
        raise NotFoundError("Report", report_id)
    if caller.role == Role.MUNICIPAL_MANAGER and report.municipality_id != await _manager_municipality(db, caller):
        raise AuthorizationError("Report belongs to another municipality")
    return report


async def download_report(db: AsyncSession, caller: Caller, report_id: str, storage: FileStorage) -> Tuple[bytes, str]:
    report = await get_report(db, caller, report_id)
    if report.status != ReportStatus.COMPLETED.value or not report.file_path:
        raise InvalidStateError(f"Report {report.id} is {report.status}")
    return storage.retrieve(report.file_path), f"report_{report.id}.pdf"
