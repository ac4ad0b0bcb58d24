"""
WasteCollect Server - Report Model
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, ForeignKey

from app.database import Base
from .enums import ReportStatus


class Report(Base):
    """Generated PDF report and where its file is stored"""
    __tablename__ = "reports"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    title = Column(String(255), nullable=False)
    report_type = Column(String(20), nullable=False)
    status = Column(String(20), default=ReportStatus.PENDING.value, index=True)
    file_path = Column(String(500))
    error_message = Column(Text)

    municipality_id = Column(String(36), ForeignKey("municipalities.id"), index=True)
    start_date = Column(DateTime)
    end_date = Column(DateTime)

    created_by_id = Column(String(36), ForeignKey("users.id"))

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    completed_at = Column(DateTime)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "report_type": self.report_type,
            "status": self.status,
            "error_message": self.error_message,
            "municipality_id": self.municipality_id,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "created_by_id": self.created_by_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
