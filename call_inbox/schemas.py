from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class LoginRequest(BaseModel):
    password: Optional[str] = None
    extension: Optional[str] = None
    remember_device: bool = True


class LoginResponse(BaseModel):
    token: str
    kind: str
    extension: Optional[str]
    expires_at: datetime


class RestoreRequest(BaseModel):
    device_token: Optional[str] = None


class RestoreResponse(BaseModel):
    success: bool = True
    extension: Optional[str]


class AuthStatus(BaseModel):
    valid: bool
    extension: Optional[str] = None
    kind: Optional[str] = None


class CallClaimOut(BaseModel):
    phone_norm: str
    last_pbx_call_id: Optional[str]
    status: str
    handled_by_ext: Optional[str]
    updated_at: datetime
    expires_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CallTransitionRequest(BaseModel):
    status: Optional[str] = None
    extension: Optional[str] = None


class MappingOut(BaseModel):
    phone_number: str
    extension: str
    created_at: datetime
    expires_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MappingCreate(BaseModel):
    phone_number: Optional[str] = None
    extension: Optional[str] = None
    expires_at: Optional[str] = None


class MappingUpdate(BaseModel):
    extension: Optional[str] = None
    expires_at: Optional[str] = None


class MappingDeleted(BaseModel):
    success: bool = True
    phone_number: str


class NotifyRequest(BaseModel):
    phone: Optional[str] = None
    status: str = "missed"


class NotifyResponse(BaseModel):
    success: bool = True
    message: str
    phone: str
