"""
SQLAlchemy models.
"""
from studio.models.job import Base, Job, JobStatus, ContentKind, utcnow
from studio.models.result import Result, Feedback

__all__ = [
    'Base',
    'Job',
    'JobStatus',
    'ContentKind',
    'Result',
    'Feedback',
    'utcnow',
]
