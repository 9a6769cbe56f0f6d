from datetime import datetime
from typing import Generic, List, TypeVar
from zoneinfo import ZoneInfo
from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CustomModel(BaseModel):
    """
    프로젝트의 모든 Pydantic 스키마가 상속받는 공통 기본 모델.
    API 데이터 정책을 중앙에서 관리합니다.
    """
    model_config = ConfigDict(
        # 웹 클라이언트와 JSON 키는 camelCase로 주고받습니다. (tradeStatus, likeCount ...)
        alias_generator=to_camel,

        # True일 경우, 필드 이름(snake_case)으로도 값을 할당할 수 있습니다.
        populate_by_name=True,

        # SQLAlchemy 모델 객체를 Pydantic 스키마로 변환 가능하게 합니다.
        from_attributes=True,

        extra="forbid",
    )

    @field_serializer('*', check_fields=False)
    def serialize_datetime(self, value, _info):
        """datetime 객체를 서울 시간대 기준으로 특정 포맷의 문자열로 변환합니다."""
        if isinstance(value, datetime):
            seoul_tz = ZoneInfo("Asia/Seoul")
            if value.tzinfo is None:
                # DB(SQLite 등)에서 naive로 돌아온 값은 UTC로 저장된 값입니다.
                value = value.replace(tzinfo=ZoneInfo("UTC"))
            # 오프셋을 포함해 두면 응답 검증 과정에서 다시 읽혀도 시각이 바뀌지 않음
            return value.astimezone(seoul_tz).isoformat(timespec="seconds")
        return value


class PageResponse(CustomModel, Generic[T]):
    """목록 조회 공통 페이지 응답"""
    content: List[T]
    page: int
    size: int
    total_elements: int
    total_pages: int

    @classmethod
    def of(cls, content: List[T], *, page: int, size: int, total: int) -> "PageResponse[T]":
        total_pages = (total + size - 1) // size if size > 0 else 0
        return cls(content=content, page=page, size=size, total_elements=total, total_pages=total_pages)
