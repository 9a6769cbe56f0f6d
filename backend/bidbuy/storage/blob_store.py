import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Protocol

import aiofiles
import aiofiles.os

from ..config import settings

logger = logging.getLogger(__name__)

EXTENSION_BY_CONTENT_TYPE = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


@dataclass(frozen=True)
class ImageUpload:
    """업로드 요청으로 들어온 이미지 한 장 (HTTP 계층과 분리된 값 객체)"""
    filename: str
    content_type: str
    data: bytes


class BlobStore(Protocol):
    async def upload(self, image: ImageUpload) -> str:
        """이미지를 저장하고 접근 URL을 반환합니다."""
        ...

    async def delete(self, url: str) -> None:
        """URL이 가리키는 이미지를 삭제합니다. 이미 없으면 아무 일도 하지 않습니다."""
        ...


class LocalBlobStore:
    """
    MEDIA_DIR 아래에 상품 이미지를 저장하는 파일 시스템 저장소.
    URL은 MEDIA_URL_PREFIX 기준 경로로 발급됩니다. (예: /media/articles/20261018/ab12....jpg)
    """

    def __init__(self, root: str | Path, url_prefix: str):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def _path_for(self, url: str) -> Path | None:
        if not url.startswith(self.url_prefix + "/"):
            return None
        relative = url[len(self.url_prefix) + 1:]
        path = (self.root / relative).resolve()
        # 저장소 밖을 가리키는 URL은 이 저장소 소유가 아님
        if self.root.resolve() not in path.parents:
            return None
        return path

    async def upload(self, image: ImageUpload) -> str:
        ext = EXTENSION_BY_CONTENT_TYPE.get(image.content_type) or os.path.splitext(image.filename)[1].lower()
        date_dir = datetime.now(timezone.utc).strftime("%Y%m%d")
        relative = f"articles/{date_dir}/{uuid.uuid4().hex}{ext}"
        path = self.root / relative

        await aiofiles.os.makedirs(path.parent, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(image.data)

        logger.debug(f"Stored image {image.filename!r} at {path}")
        return f"{self.url_prefix}/{relative}"

    async def delete(self, url: str) -> None:
        path = self._path_for(url)
        if path is None:
            logger.warning(f"Refusing to delete blob outside of media root: {url}")
            return
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            pass


async def discard_blobs(blobs: BlobStore, urls: Iterable[str]) -> None:
    """
    best-effort 삭제. DB 트랜잭션과 묶을 수 없는 저장소이므로 실패는 로그만 남깁니다.
    """
    for url in urls:
        try:
            await blobs.delete(url)
        except Exception as e:
            logger.warning(f"Failed to delete blob {url}: {e}")


@lru_cache(maxsize=1)
def get_blob_store() -> BlobStore:
    return LocalBlobStore(settings.MEDIA_DIR, settings.MEDIA_URL_PREFIX)
