from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from call_inbox.core.database import get_db
from call_inbox.core.deps import require_auth
from call_inbox.schemas import MappingCreate, MappingDeleted, MappingOut, MappingUpdate
from call_inbox.services import mappings
from call_inbox.services.auth import AuthContext

router = APIRouter(prefix="/mappings", tags=["mappings"])


@router.get("", response_model=List[MappingOut])
def list_mappings(db: Session = Depends(get_db), auth: AuthContext = Depends(require_auth)):
    return mappings.list_mappings(db)


@router.post("", response_model=MappingOut, status_code=status.HTTP_201_CREATED)
def create_mapping(
    payload: MappingCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return mappings.create_mapping(db, payload.phone_number, payload.extension, payload.expires_at)


@router.patch("/{phone_number}", response_model=MappingOut)
def update_mapping(
    phone_number: str,
    payload: MappingUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return mappings.update_mapping(db, phone_number, payload.extension, payload.expires_at)


@router.delete("/{phone_number}", response_model=MappingDeleted)
def delete_mapping(
    phone_number: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return MappingDeleted(phone_number=mappings.delete_mapping(db, phone_number))
