"""
Account Endpoints

    - GET    /api/account
    - PUT    /api/account
    - DELETE /api/account
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import AuthContext, RateLimit, get_current_auth
from app.schemas import AccountResponse, ErrorResponse, UpdateAccountRequest
from app.services import accounts

router = APIRouter(
    prefix="/api/account",
    tags=["Account"],
    dependencies=[Depends(RateLimit("api"))],
    responses={401: {"model": ErrorResponse}},
)


@router.get("", response_model=AccountResponse)
async def get_account(auth: AuthContext = Depends(get_current_auth)) -> AccountResponse:
    return AccountResponse.model_validate(auth.account)


@router.put("", response_model=AccountResponse)
async def update_account(
    body: UpdateAccountRequest,
    auth: AuthContext = Depends(get_current_auth),
    db: AsyncSession = Depends(get_db),
) -> AccountResponse:
    account = await accounts.rename_account(db, auth.account, body.name)
    return AccountResponse.model_validate(account)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    auth: AuthContext = Depends(get_current_auth),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Delete the account with all of its users and orders."""
    await accounts.delete_account(db, auth.account)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
