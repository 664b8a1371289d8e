"""
SQLite-based threshold rule store for envalert.

This module persists threshold rules and enforces the
(domain_type, metric, operator, threshold_value) uniqueness constraint.
"""

import aiosqlite
from typing import List, Optional
from envalert.common.clock import from_epoch, to_epoch
from envalert.core.errors import ConflictError
from envalert.core.models import ThresholdRule
from envalert.observability.logging_setup import get_logger

log = get_logger("envalert.rules")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS threshold_rules (
    id TEXT PRIMARY KEY,
    domain_type TEXT NOT NULL,
    metric TEXT NOT NULL,
    operator TEXT NOT NULL,
    threshold_value REAL NOT NULL,
    level TEXT NOT NULL,
    advice_template TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at REAL NOT NULL,
    updated_at REAL NOT NULL,
    UNIQUE (domain_type, metric, operator, threshold_value)
);
CREATE INDEX IF NOT EXISTS idx_rules_active ON threshold_rules(is_active);
"""

_COLUMNS = ("id, domain_type, metric, operator, threshold_value, level, "
            "advice_template, is_active, created_at, updated_at")


def _row_to_rule(row) -> ThresholdRule:
    return ThresholdRule(
        id=row[0],
        domain_type=row[1],
        metric=row[2],
        operator=row[3],
        threshold_value=row[4],
        level=row[5],
        advice_template=row[6],
        is_active=bool(row[7]),
        created_at=from_epoch(row[8]),
        updated_at=from_epoch(row[9]),
    )


class SQLiteRuleStore:
    """SQLite 기반 임계값 규칙 저장소"""

    def __init__(self, path: str):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLiteRuleStore 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info(f"SQLiteRuleStore 스키마 초기화 완료: {self.path}")

    async def insert(self, rule: ThresholdRule) -> ThresholdRule:
        """
        규칙을 추가합니다.

        Raises:
            ConflictError: 같은 (domain_type, metric, operator, threshold_value) 규칙이 이미 있음
        """
        try:
            async with aiosqlite.connect(self.path) as db:
                await db.execute(
                    f"INSERT INTO threshold_rules ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (rule.id, rule.domain_type, rule.metric, rule.operator, rule.threshold_value,
                     rule.level, rule.advice_template, 1 if rule.is_active else 0,
                     to_epoch(rule.created_at), to_epoch(rule.updated_at))
                )
                await db.commit()
        except aiosqlite.IntegrityError as e:
            raise ConflictError(f"이미 존재하는 임계값 규칙입니다: {rule.key}") from e
        return rule

    async def get(self, rule_id: str) -> Optional[ThresholdRule]:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM threshold_rules WHERE id = ?", (rule_id,)
            )
            row = await cursor.fetchone()
            return _row_to_rule(row) if row else None

    async def list(self, active_only: bool = False) -> List[ThresholdRule]:
        """
        규칙 목록을 조회합니다.

        Args:
            active_only: True이면 활성 규칙만

        Returns:
            domain_type, metric, threshold_value 순으로 정렬된 규칙 목록
        """
        query = f"SELECT {_COLUMNS} FROM threshold_rules"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY domain_type, metric, threshold_value"

        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(query)
            rows = await cursor.fetchall()
            return [_row_to_rule(r) for r in rows]

    async def update(self, rule: ThresholdRule) -> bool:
        """
        규칙 전체를 덮어씁니다.

        Returns:
            갱신 여부 (규칙이 없으면 False)

        Raises:
            ConflictError: 다른 규칙과 고유 키가 겹침
        """
        try:
            async with aiosqlite.connect(self.path) as db:
                cursor = await db.execute(
                    "UPDATE threshold_rules SET domain_type = ?, metric = ?, operator = ?, "
                    "threshold_value = ?, level = ?, advice_template = ?, is_active = ?, "
                    "updated_at = ? WHERE id = ?",
                    (rule.domain_type, rule.metric, rule.operator, rule.threshold_value,
                     rule.level, rule.advice_template, 1 if rule.is_active else 0,
                     to_epoch(rule.updated_at), rule.id)
                )
                await db.commit()
                return cursor.rowcount > 0
        except aiosqlite.IntegrityError as e:
            raise ConflictError(f"이미 존재하는 임계값 규칙입니다: {rule.key}") from e

    async def delete(self, rule_id: str) -> bool:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("DELETE FROM threshold_rules WHERE id = ?", (rule_id,))
            await db.commit()
            return cursor.rowcount > 0

    async def count(self) -> int:
        """저장된 규칙 수를 반환합니다."""
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM threshold_rules")
            result = await cursor.fetchone()
            return result[0] if result else 0
