"""
Pydantic schemas for Job API operations.
"""
from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, ConfigDict, field_validator

from studio.config import MAX_PROMPT_LENGTH, MAX_PROMPTS_PER_JOB
from studio.models.job import ContentKind

Style = Literal['cinematic', 'modern', 'minimalist', 'documentary', 'animated', 'lifestyle']
Tone = Literal['energetic', 'professional', 'playful', 'luxurious', 'friendly', 'urgent']
AspectRatio = Literal['16:9', '9:16', '1:1', '4:5', '21:9']
Platform = Literal['Instagram Reels', 'TikTok', 'YouTube Shorts', 'Facebook', 'social media']
Resolution = Literal['720p', '1080p', '4k']
Format = Literal['landscape', 'portrait', 'square']


class GenerationOptions(BaseModel):
    """Closed set of generation options. Unknown keys are rejected."""
    model_config = ConfigDict(extra='forbid')

    style: Optional[Style] = None
    tone: Optional[Tone] = None
    aspect_ratio: Optional[AspectRatio] = None
    target_platform: Optional[Platform] = None
    duration: Optional[int] = Field(None, ge=5, le=60, description='Seconds')
    resolution: Optional[Resolution] = None
    format: Optional[Format] = None


class JobCreate(BaseModel):
    """Schema for creating a new generation job."""
    kind: ContentKind = Field(..., description='Content category')
    prompts: List[str] = Field(..., min_length=1, max_length=MAX_PROMPTS_PER_JOB)
    options: GenerationOptions = Field(default_factory=GenerationOptions)

    @field_validator('prompts')
    @classmethod
    def check_prompts(cls, prompts: List[str]) -> List[str]:
        for prompt in prompts:
            if not prompt.strip():
                raise ValueError('prompts must not be blank')
            if len(prompt) > MAX_PROMPT_LENGTH:
                raise ValueError(f'prompts are limited to {MAX_PROMPT_LENGTH} characters')
        return prompts


class ResultResponse(BaseModel):
    """Schema for a generated result."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    job_id: str
    position: int
    prompt: str
    generated_content: str
    kind: str
    url: Optional[str]
    thumbnail_url: Optional[str]
    media_metadata: Optional[dict]
    feedback: Optional[dict]
    created_at: datetime


class JobResponse(BaseModel):
    """Schema for job response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    kind: str
    prompts: List[str]
    options: dict
    status: str
    error_message: Optional[str]
    prompts_failed: int
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime]
    results: List[ResultResponse] = []


class JobListResponse(BaseModel):
    """Schema for a user's job history."""
    jobs: List[JobResponse]
    limit: int
