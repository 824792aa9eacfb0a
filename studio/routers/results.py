"""
Result feedback endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from studio.database import get_db
from studio.repositories import ResultRepository
from studio.routers.dependencies import get_current_user_id
from studio.schemas.feedback import FeedbackCreate, FeedbackResponse


router = APIRouter(prefix='/results', tags=['results'])


@router.post('/{result_id}/feedback', response_model=FeedbackResponse, status_code=201)
async def submit_feedback(
    result_id: str,
    feedback_data: FeedbackCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> FeedbackResponse:
    """
    Rate a generated result.

    Repeat submissions are accepted and replace the feedback shown on the result.
    Results of other users' jobs are reported as not found.
    """
    result = await ResultRepository.get(db, result_id, user_id=user_id)

    if not result:
        raise HTTPException(status_code=404, detail=f'Result not found: {result_id}')

    feedback = await ResultRepository.submit_feedback(
        db,
        result,
        user_id=user_id,
        rating=feedback_data.rating,
        comment=feedback_data.comment,
    )
    return FeedbackResponse.model_validate(feedback)
