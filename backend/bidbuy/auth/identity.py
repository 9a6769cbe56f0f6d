import json
import logging
from typing import Any, Dict, Union

import httpx
from jose import jwt, JWTError
from pydantic import ValidationError

from ..config import IdentityProviderSettings, settings
from ..errors import BidBuyError, ErrorKind
from .schema import OAuthProfile

logger = logging.getLogger(__name__)

# jwks_url별 공개키 캐시 (kid를 못 찾으면 한 번 다시 받아옵니다)
_jwks_cache: Dict[str, Dict[str, Any]] = {}


def get_provider(name: str) -> IdentityProviderSettings:
    provider = settings.OAUTH_PROVIDERS.get(name)
    if provider is None:
        raise BidBuyError(ErrorKind.UNAUTHENTICATED, f"Unsupported identity provider: {name}")
    return provider


async def fetch_jwks(url: str) -> Dict[str, Any]:
    try:
        async with httpx.AsyncClient(timeout=settings.OAUTH_JWKS_TIMEOUT) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()
    except httpx.TimeoutException:
        logger.error(f"Timed out fetching JWKS from {url}")
        raise BidBuyError(ErrorKind.INTERNAL, "Identity provider timed out")
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch JWKS from {url}: {e}")
        raise BidBuyError(ErrorKind.INTERNAL, "Identity provider is unavailable")


def _has_kid(jwks: Dict[str, Any], kid: str) -> bool:
    return any(key.get("kid") == kid for key in jwks.get("keys", []))


async def _signing_key(provider: IdentityProviderSettings, id_token: str) -> Union[str, Dict[str, Any]]:
    if provider.key:
        raw = provider.key.strip()
        return json.loads(raw) if raw.startswith("{") else raw
    if not provider.jwks_url:
        raise BidBuyError(ErrorKind.INTERNAL, "Identity provider has no verification key configured")

    kid = jwt.get_unverified_header(id_token).get("kid")
    jwks = _jwks_cache.get(provider.jwks_url)
    if jwks is None or (kid and not _has_kid(jwks, kid)):
        # 최초 요청이거나 IdP가 키를 교체한 경우
        jwks = await fetch_jwks(provider.jwks_url)
        _jwks_cache[provider.jwks_url] = jwks
    return jwks


async def verify_id_token(provider_name: str, id_token: str) -> OAuthProfile:
    """
    IdP가 발급한 ID 토큰의 서명, 발급자(iss), 대상(aud), 만료를 검증하고
    검증된 클레임으로 프로필을 만듭니다. 검증에 실패하면 UNAUTHENTICATED 입니다.
    """
    provider = get_provider(provider_name)
    try:
        key = await _signing_key(provider, id_token)
        claims = jwt.decode(
            id_token,
            key,
            algorithms=provider.algorithms,
            audience=provider.audience,
            issuer=provider.issuer,
            options={
                "verify_at_hash": False,
                "require_aud": True,
                "require_iss": True,
                "require_exp": True,
                "require_sub": True,
            },
        )
    except JWTError as e:
        logger.warning(f"Rejected {provider_name} ID token: {e}")
        raise BidBuyError(ErrorKind.UNAUTHENTICATED, "Invalid identity token")

    if claims.get("email_verified") is False:
        raise BidBuyError(ErrorKind.UNAUTHENTICATED, "Identity provider has not verified this email")

    subject = claims.get("sub")
    email = claims.get("email")
    if not subject or not email:
        raise BidBuyError(ErrorKind.UNAUTHENTICATED, "Identity token is missing the subject or email")

    username = claims.get("name") or claims.get("nickname") or email.split("@", 1)[0]
    try:
        return OAuthProfile(
            provider=provider_name,
            provider_id=str(subject),
            email=email,
            username=username[:100],
            profile_image_url=claims.get("picture"),
        )
    except ValidationError as e:
        logger.warning(f"Rejected {provider_name} ID token with malformed claims: {e}")
        raise BidBuyError(ErrorKind.UNAUTHENTICATED, "Identity token has malformed claims")
