"""
Result and feedback models.
"""
import uuid
from sqlalchemy import Column, String, Text, DateTime, Integer, JSON, ForeignKey
from sqlalchemy.orm import relationship

from studio.models.job import Base, utcnow


class Result(Base):
    """
    One generated output for one prompt of a job.

    `feedback` mirrors the latest Feedback row submitted for this result.
    """
    __tablename__ = 'results'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    job_id = Column(String(36), ForeignKey('jobs.id'), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    prompt = Column(Text, nullable=False)
    generated_content = Column(Text, nullable=False)
    kind = Column(String(20), nullable=False)
    url = Column(Text, nullable=True)
    thumbnail_url = Column(Text, nullable=True)
    # 'metadata' is reserved on declarative classes
    media_metadata = Column('metadata', JSON, nullable=True)
    feedback = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    job = relationship('Job', back_populates='results')

    def __repr__(self):
        return f'<Result {self.id} job={self.job_id}>'


class Feedback(Base):
    """A user's rating of a result. Every submission is kept."""
    __tablename__ = 'feedback'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    result_id = Column(String(36), ForeignKey('results.id'), nullable=False, index=True)
    user_id = Column(String(100), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    def __repr__(self):
        return f'<Feedback {self.id} rating={self.rating}>'
