# backend/bidbuy/articles/router.py
import json
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import ValidationError

from ..auth.dependencies import CurrentPrincipal, OptionalPrincipal
from ..auth.schema import Principal
from ..database import SessionDep
from ..errors import BidBuyError, ErrorKind
from ..models import PageResponse
from ..storage.blob_store import BlobStore, ImageUpload, get_blob_store
from .models import SortKey
from .schemas import ArticleCreate, ArticleDetail, ArticleSummary, ArticleUpdate
from . import queries, service


router = APIRouter(prefix="/api/articles", tags=["articles"])


def _parse_article_part(raw: str, schema):
    """multipart의 `article` 파트(JSON 문자열)를 스키마로 검증합니다."""
    try:
        return schema.model_validate(json.loads(raw))
    except json.JSONDecodeError as e:
        raise BidBuyError(ErrorKind.BAD_REQUEST, f"article part is not valid JSON: {e.msg}")
    except ValidationError as e:
        errors = [{"loc": list(err.get("loc", [])), "msg": err.get("msg")} for err in e.errors()]
        raise BidBuyError(ErrorKind.BAD_REQUEST, errors)


async def _read_images(files: Optional[List[UploadFile]]) -> List[ImageUpload]:
    images = []
    for f in files or []:
        # 파일을 선택하지 않은 빈 파트는 무시
        if not f.filename:
            continue
        images.append(ImageUpload(
            filename=f.filename,
            content_type=f.content_type or "application/octet-stream",
            data=await f.read(),
        ))
    return images


@router.get("", response_model=PageResponse[ArticleSummary])
async def list_articles(
    db: SessionDep,
    principal: Principal = OptionalPrincipal,
    sort: Optional[str] = None,
    page: int = Query(0, ge=0),
    size: Optional[int] = Query(None, ge=1),
):
    return await queries.list_sale_articles(db, principal.user_id, SortKey.parse(sort), page, size)


@router.get("/{article_id}", response_model=ArticleDetail)
async def read_article(article_id: int, db: SessionDep, principal: Principal = OptionalPrincipal):
    return await service.get_article_detail(db, principal, article_id)


@router.post("", response_model=ArticleDetail, status_code=status.HTTP_201_CREATED)
async def create_article(
    db: SessionDep,
    article: str = Form(...),
    images: Optional[List[UploadFile]] = File(None),
    principal: Principal = CurrentPrincipal,
    blobs: BlobStore = Depends(get_blob_store),
):
    data = _parse_article_part(article, ArticleCreate)
    return await service.create_article(db, blobs, principal, data, await _read_images(images))


@router.put("/{article_id}", response_model=ArticleDetail)
async def update_article(
    article_id: int,
    db: SessionDep,
    article: str = Form(...),
    images: Optional[List[UploadFile]] = File(None),
    principal: Principal = CurrentPrincipal,
    blobs: BlobStore = Depends(get_blob_store),
):
    data = _parse_article_part(article, ArticleUpdate)
    return await service.update_article(db, blobs, principal, article_id, data, await _read_images(images))


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(
    article_id: int,
    db: SessionDep,
    principal: Principal = CurrentPrincipal,
    blobs: BlobStore = Depends(get_blob_store),
):
    await service.delete_article(db, blobs, principal, article_id)
    return
