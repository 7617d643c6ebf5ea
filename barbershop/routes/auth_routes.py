import hmac

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator

from barbershop.auth import jwt_handler
from barbershop.auth.dependencies import get_current_admin
from barbershop.core.config import Settings, get_settings

router = APIRouter(tags=['auth'])


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'


@router.post('/login', response_model=TokenResponse)
def login(data: LoginRequest, settings: Settings = Depends(get_settings)):
    if not settings.admin_password:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Admin login is not configured.',
        )

    email_matches = hmac.compare_digest(data.email.encode(), settings.admin_email.strip().lower().encode())
    password_matches = hmac.compare_digest(data.password.encode(), settings.admin_password.encode())
    if not (email_matches and password_matches):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Invalid email or password.',
        )

    token = jwt_handler.create_access_token(subject=data.email, settings=settings)
    return TokenResponse(access_token=token)


@router.get('/me')
def me(admin_email: str = Depends(get_current_admin)):
    return {'email': admin_email, 'role': 'admin'}
