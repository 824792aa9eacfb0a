"""
Job model for creative generation tasks.
"""
import uuid
import enum
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, DateTime, Integer, JSON
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what SQLite hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class JobStatus(str, enum.Enum):
    """Status states for generation jobs."""
    pending = 'pending'
    processing = 'processing'
    completed = 'completed'
    failed = 'failed'


class ContentKind(str, enum.Enum):
    """Content categories a job can produce."""
    video = 'video'
    image = 'image'
    ad = 'ad'
    batch = 'batch'


class Job(Base):
    """
    Represents a content generation job.

    Attributes:
        id: Unique job identifier (UUID)
        user_id: Owner of the job
        kind: Content category (video/image/ad/batch)
        prompts: Ordered list of input prompts
        options: Validated generation options
        status: Current job status
        error_message: Error details if failed
        prompts_failed: How many prompts produced no result
        created_at: Job creation timestamp
        updated_at: Last status change
        completed_at: When the job completed successfully
        lease_expires_at: Processing lease deadline (null unless processing)
    """
    __tablename__ = 'jobs'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(100), nullable=False, index=True)
    kind = Column(String(20), nullable=False)
    prompts = Column(JSON, nullable=False)
    options = Column(JSON, nullable=False, default=dict)
    status = Column(String(20), nullable=False, default=JobStatus.pending.value, index=True)
    error_message = Column(Text, nullable=True)
    prompts_failed = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
    completed_at = Column(DateTime, nullable=True)
    lease_expires_at = Column(DateTime, nullable=True)

    results = relationship(
        'Result',
        back_populates='job',
        lazy='selectin',
        order_by='Result.position',
    )

    def __repr__(self):
        return f'<Job {self.id} status={self.status}>'
