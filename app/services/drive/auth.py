# app/services/drive/auth.py

"""
Google Drive API 호출에 사용할 Bearer 토큰 공급자 모듈입니다.

- `StaticTokenProvider`: 미리 발급된 OAuth 액세스 토큰을 그대로 사용합니다.
- `ServiceAccountTokenProvider`: 서비스 계정 키로 RS256 JWT assertion을 서명하고
  토큰 엔드포인트에서 액세스 토큰을 교환합니다. 토큰은 만료 직전까지 재사용합니다.

참고: 서비스 계정에는 자체 저장 용량이 없으므로 GOOGLE_DRIVE_FOLDER_ID는
서비스 계정이 멤버인 공유 드라이브의 폴더이거나, 서비스 계정에 편집 권한이 공유된 폴더여야 합니다.
"""

import asyncio
import base64
import binascii
import json
import logging
import time
from typing import Optional, Protocol, Sequence

import httpx
from jose import jwt
from jose.exceptions import JOSEError

from app.core.exceptions import ConfigMissing, StorageUnavailable

logger = logging.getLogger(__name__)

DRIVE_SCOPES = ("https://www.googleapis.com/auth/drive",)
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
TOKEN_LIFETIME_SECONDS = 3600
EXPIRY_MARGIN_SECONDS = 60


class TokenProvider(Protocol):
    async def get_token(self, http: httpx.AsyncClient) -> str:
        ...


def load_service_account_info(raw: str) -> dict:
    """
    서비스 계정 키 문자열을 dict로 변환합니다.
    JSON 원문이 아니면 base64로 인코딩된 JSON으로 간주합니다.
    """
    text = raw.strip()
    if not text.startswith("{"):
        try:
            text = base64.b64decode(text, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ConfigMissing("GOOGLE_SERVICE_ACCOUNT_KEY must be valid JSON") from e
    try:
        info = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigMissing("GOOGLE_SERVICE_ACCOUNT_KEY must be valid JSON") from e
    if not isinstance(info, dict):
        raise ConfigMissing("GOOGLE_SERVICE_ACCOUNT_KEY must be a JSON object")
    missing = [key for key in ("client_email", "private_key") if not info.get(key)]
    if missing:
        raise ConfigMissing(f"GOOGLE_SERVICE_ACCOUNT_KEY is missing: {', '.join(missing)}")
    return info


class StaticTokenProvider:
    def __init__(self, token: str):
        self._token = token

    async def get_token(self, http: httpx.AsyncClient) -> str:
        return self._token


class ServiceAccountTokenProvider:
    def __init__(self, info: dict, scopes: Sequence[str] = DRIVE_SCOPES):
        self.client_email: str = info["client_email"]
        self._private_key: str = info["private_key"]
        self._private_key_id: Optional[str] = info.get("private_key_id")
        self._token_uri: str = info.get("token_uri") or DEFAULT_TOKEN_URI
        self._scopes = " ".join(scopes)
        self._token: Optional[str] = None
        self._expires_at: float = 0.0
        self._lock = asyncio.Lock()

    def _build_assertion(self, issued_at: int) -> str:
        claims = {
            "iss": self.client_email,
            "scope": self._scopes,
            "aud": self._token_uri,
            "iat": issued_at,
            "exp": issued_at + TOKEN_LIFETIME_SECONDS,
        }
        headers = {"kid": self._private_key_id} if self._private_key_id else None
        try:
            return jwt.encode(claims, self._private_key, algorithm="RS256", headers=headers)
        except JOSEError as e:
            raise ConfigMissing("GOOGLE_SERVICE_ACCOUNT_KEY has an unusable private key") from e

    async def get_token(self, http: httpx.AsyncClient) -> str:
        async with self._lock:
            now = time.time()
            if self._token and now < self._expires_at - EXPIRY_MARGIN_SECONDS:
                return self._token

            assertion = self._build_assertion(int(now))
            try:
                response = await http.post(
                    self._token_uri,
                    data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
                )
            except httpx.HTTPError as e:
                raise StorageUnavailable("Failed to get access token for Drive", details=str(e)) from e

            if response.status_code != 200:
                raise StorageUnavailable(
                    "Failed to get access token for Drive",
                    details=f"{response.status_code} {response.text}",
                )
            payload = response.json()
            token = payload.get("access_token")
            if not token:
                raise StorageUnavailable("Failed to get access token for Drive", details="no access_token in response")

            self._token = token
            self._expires_at = now + int(payload.get("expires_in", TOKEN_LIFETIME_SECONDS))
            logger.info("Google Drive access token issued for %s", self.client_email)
            return token
