from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
import uuid
from datetime import datetime, timezone

from farmlog.api.core.database import Base
from farmlog.models.task_record import ALL_VARIANT_FIELDS, VARIANT_MODELS, TaskRecordBase

class Task(Base):
    """
    One logged farm activity

    All variants share this table; attribute columns that do not belong to a
    row's variant stay NULL.
    """
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_owner_date", "owner_id", "date"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(50), nullable=False, index=True)
    date = Column(String(10), nullable=False)
    field = Column(String(255), nullable=False)
    notes = Column(Text, nullable=False, default="")

    # Maintenance
    equipment = Column(Text)
    issue = Column(Text)
    parts = Column(Text)
    time_spent = Column(Text)

    # Fertigation / irrigation / pesticide / herbicide / plantation
    fertilizer_name = Column(Text)
    quantity = Column(Text)
    duration = Column(Text)
    crop = Column(Text)
    method = Column(Text)
    area = Column(Text)
    water_source = Column(Text)
    chemical = Column(Text)
    chemical_type = Column(Text)
    herbicide_name = Column(Text)
    plant_name = Column(Text)
    variety = Column(Text)
    number = Column(Text)

    # Stamped in Python for microsecond resolution; orders same-date tasks
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def apply_record(self, record: TaskRecordBase) -> None:
        """Copy a validated record's attributes onto the row"""
        self.type = record.type
        self.date = record.date
        self.field = record.field
        self.notes = record.notes
        own_fields = record.variant_fields()
        for name in ALL_VARIANT_FIELDS:
            setattr(self, name, getattr(record, name) if name in own_fields else None)

    def to_record(self) -> TaskRecordBase:
        """Row as its variant model; foreign-variant columns are left out"""
        model = VARIANT_MODELS[self.type]
        values = {
            "id": self.id,
            "owner": self.owner_id,
            "type": self.type,
            "date": self.date,
            "field": self.field,
            "notes": self.notes or "",
        }
        for name in model.variant_fields():
            values[name] = getattr(self, name) or ""
        return model(**values)

    def __repr__(self):
        return f"<Task {self.id} ({self.type})>"
