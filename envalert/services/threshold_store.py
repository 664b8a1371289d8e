"""
Threshold rule management for envalert.

This module validates rule create/update requests, applies patch
semantics on update and delegates persistence to a rule store port.
"""

import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
from envalert.common.clock import Clock, utc_now
from envalert.common.validation import parse_model
from envalert.core.errors import NotFoundError
from envalert.core.models import ThresholdRule, ThresholdRuleCreate, ThresholdRuleUpdate
from envalert.core.seeds import DEFAULT_RULES
from envalert.observability.logging_setup import get_logger
from envalert.ports.rule_store import ThresholdRuleStorePort

log = get_logger("envalert.thresholds")

RulePayload = Union[Mapping[str, Any], ThresholdRuleCreate]


class ThresholdStore:
    """임계값 규칙 관리 서비스"""

    def __init__(self, store: ThresholdRuleStorePort, clock: Clock = utc_now,
                 id_factory: Callable[[], str] = lambda: str(uuid.uuid4())):
        """
        초기화합니다.

        Args:
            store: 규칙 저장소
            clock: 현재 시각 함수
            id_factory: 규칙 ID 생성 함수
        """
        self.store = store
        self.clock = clock
        self.id_factory = id_factory

    async def create(self, payload: RulePayload) -> ThresholdRule:
        """
        규칙을 생성합니다.

        Raises:
            ValidationError: 입력 검증 실패
            ConflictError: 같은 (domain_type, metric, operator, threshold_value) 규칙이 존재
        """
        data = parse_model(ThresholdRuleCreate, payload)
        now = self.clock()
        rule = ThresholdRule(id=self.id_factory(), created_at=now, updated_at=now, **data.model_dump())
        await self.store.insert(rule)
        log.info(f"임계값 규칙 생성 id:{rule.id} key:{rule.key} level:{rule.level}")
        return rule

    async def get(self, rule_id: str) -> ThresholdRule:
        rule = await self.store.get(rule_id)
        if rule is None:
            raise NotFoundError(f"임계값 규칙을 찾을 수 없습니다: {rule_id}")
        return rule

    async def list_all(self) -> List[ThresholdRule]:
        return await self.store.list()

    async def list_active(self) -> List[ThresholdRule]:
        return await self.store.list(active_only=True)

    async def update(self, rule_id: str, patch: Union[Mapping[str, Any], ThresholdRuleUpdate]) -> ThresholdRule:
        """
        규칙을 부분 수정합니다 (주어진 필드만 변경).

        Raises:
            NotFoundError: 규칙 없음
            ValidationError: 입력 검증 실패
            ConflictError: 수정 결과가 다른 규칙과 충돌
        """
        changes: Dict[str, Any] = parse_model(ThresholdRuleUpdate, patch).model_dump(exclude_unset=True)
        changes = {k: v for k, v in changes.items() if v is not None}
        current = await self.get(rule_id)

        merged = current.model_dump()
        merged.update(changes)
        merged["updated_at"] = self.clock()
        rule = parse_model(ThresholdRule, merged)

        if not await self.store.update(rule):
            raise NotFoundError(f"임계값 규칙을 찾을 수 없습니다: {rule_id}")
        log.info(f"임계값 규칙 수정 id:{rule_id} fields:{sorted(changes)}")
        return rule

    async def delete(self, rule_id: str) -> None:
        """
        규칙을 삭제합니다.

        Raises:
            NotFoundError: 규칙 없음
        """
        if not await self.store.delete(rule_id):
            raise NotFoundError(f"임계값 규칙을 찾을 수 없습니다: {rule_id}")
        log.info(f"임계값 규칙 삭제 id:{rule_id}")

    async def toggle_active(self, rule_id: str) -> ThresholdRule:
        """활성 상태를 반전합니다."""
        current = await self.get(rule_id)
        return await self.update(rule_id, {"is_active": not current.is_active})

    async def seed_defaults(self, rules: Optional[List[ThresholdRuleCreate]] = None) -> int:
        """
        규칙 테이블이 비어 있으면 기본 규칙을 넣습니다.

        Returns:
            추가된 규칙 수
        """
        if await self.store.count() > 0:
            return 0
        rules = DEFAULT_RULES if rules is None else rules
        for rule in rules:
            await self.create(rule)
        log.info(f"기본 임계값 규칙 {len(rules)}개 추가")
        return len(rules)
