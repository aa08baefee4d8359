# backend/guarddb/apps/accounts/router_menus.py

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from guarddb.database import get_read_db
from guarddb.repository import SqlAlchemyUnitOfWork
from guarddb.security import get_current_active_user
from . import models, schemas, services

router = APIRouter(prefix="/accounts/menus", tags=["accounts"])


@router.get(
    "/me",
    response_model=List[schemas.MenuRead],
    summary="Navigation tree for the current user's roles",
)
def get_my_menus(
    db: Session = Depends(get_read_db),
    current_user: models.User = Depends(get_current_active_user),
) -> List[schemas.MenuRead]:
    return services.get_menu_tree_for_user(SqlAlchemyUnitOfWork(db), current_user)
