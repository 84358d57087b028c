from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, Request, status

from app.modules.flashcards.main import FlashcardsGenerator


async def current_caller_id(
    x_user_id: Optional[str] = Header(default=None),
) -> str:
    """Resolve the caller identity forwarded by the authenticating gateway.

    The gateway sets ``X-User-Id`` after verifying the session; requests
    without it never reach generation.
    """
    caller_id = (x_user_id or "").strip()
    if not caller_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return caller_id


def get_generator(request: Request) -> FlashcardsGenerator:
    """Return the process-wide generator built in the app lifespan."""
    return request.app.state.generator
