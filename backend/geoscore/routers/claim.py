from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session
from ..schemas.auth import Token
from ..schemas.claim import ClaimRequest
from ..services.claim_service import ClaimService
from .auth import issue_token

router = APIRouter(prefix="/claim", tags=["claim"])


@router.post("", response_model=Token, status_code=status.HTTP_201_CREATED)
async def claim_legacy_player(payload: ClaimRequest, session: AsyncSession = Depends(get_session)):
    if not payload.legacy_id or not payload.code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Legacy player and claim code required.",
        )
    try:
        user = await ClaimService(session).claim(
            legacy_id=payload.legacy_id,
            code=payload.code,
            password=payload.password,
            display_name=payload.display_name,
        )
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return issue_token(user)
