"""
Shared request dependencies.
"""
from fastapi import Header


async def get_current_user_id(
    x_user_id: str = Header(..., min_length=1, max_length=100, description='Authenticated user id'),
) -> str:
    """
    Caller identity.

    Authentication happens upstream; the gateway forwards the user id as
    the X-User-Id header.
    """
    return x_user_id
