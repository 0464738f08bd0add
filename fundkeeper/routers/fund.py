"""
fundkeeper/routers/fund.py

Saved-fund endpoints. All three require a bearer token; the caller only
ever sees and mutates their own list.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fundkeeper.database import get_db
from fundkeeper.models.user import User
from fundkeeper.schemas.fund import RemoveFundRequest, SaveFundRequest
from fundkeeper.schemas.user import MessageResponse
from fundkeeper.services import fund as fund_service
from fundkeeper.utils.auth import get_current_user

router = APIRouter(tags=["funds"])


@router.get("/saved", response_model=List[Dict[str, Any]])
def list_saved(user: User = Depends(get_current_user)):
    """
    Return the caller's saved funds in the order they were saved ([] if none).
    """
    return fund_service.list_saved_funds(user)


@router.post("/save", response_model=MessageResponse)
def save_fund(
    body: SaveFundRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    fund_service.add_saved_fund(user, body.fund, db)
    return {"message": "Saved"}


@router.post("/remove", response_model=MessageResponse)
def remove_fund(
    body: RemoveFundRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Remove every saved entry with the given fund id. Unknown ids still succeed.
    """
    fund_service.remove_saved_fund(user, body.fund_id, db)
    return {"message": "Removed"}
