"""Request payload validation helpers for envalert."""

from typing import Any, Type, TypeVar
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from envalert.core.errors import ValidationError

M = TypeVar("M", bound=BaseModel)


def parse_model(model: Type[M], payload: Any) -> M:
    """
    요청 본문을 모델로 변환합니다.

    Args:
        model: 대상 pydantic 모델
        payload: dict 또는 이미 변환된 모델

    Returns:
        검증된 모델 인스턴스

    Raises:
        ValidationError: 검증 실패 (필드 경로와 메시지 포함)
    """
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(errors) from e
