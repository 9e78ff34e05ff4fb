# medlab/core/security.py

"""
JWT(JSON Web Token) 생성 및 검증을 담당하는 모듈입니다.

인증(로그인, 비밀번호 해싱)은 외부 ID 공급자가 맡습니다.
이 모듈은 전달받은 Bearer 토큰의 `sub` 클레임에서 숫자형 행위자(actor) ID만 꺼내며,
역할 기반 권한 검사는 하지 않습니다.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from medlab.core.config import settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Access Token을 생성합니다. (외부 ID 공급자 및 테스트에서 사용)
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY.get_secret_value(), algorithm=settings.ALGORITHM)


def decode_actor_id(token: str) -> int:
    """
    토큰을 검증하고 `sub` 클레임을 정수 행위자 ID로 변환합니다.
    검증에 실패하면 401을 발생시킵니다.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY.get_secret_value(), algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.debug("JWTError: %s", e)
        raise credentials_exception

    subject = payload.get("sub")
    if subject is None:
        raise credentials_exception
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise credentials_exception


async def get_current_actor_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> int:
    """
    요청을 보낸 행위자의 ID를 반환합니다.
    모든 변경 작업은 이 값을 명시적인 인자로 서비스 계층에 전달합니다.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_actor_id(credentials.credentials)
