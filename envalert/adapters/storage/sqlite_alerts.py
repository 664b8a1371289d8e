"""
SQLite-based alert record store for envalert.

This module stores dispatched alerts and answers the duplicate,
active-alert and statistics queries used by the engine and the API.
"""

import json
import aiosqlite
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple
from envalert.common.clock import from_epoch, to_epoch, utc_now
from envalert.core.errors import ConflictError
from envalert.core.models import ALERT_LEVELS, AlertRecord, Polygon, SourceData
from envalert.observability.logging_setup import get_logger

log = get_logger("envalert.alerts")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS alerts (
    id TEXT PRIMARY KEY,
    level TEXT NOT NULL,
    domain_type TEXT NOT NULL,
    title TEXT NOT NULL,
    message TEXT NOT NULL,
    advice TEXT,
    area TEXT,
    sent_at REAL NOT NULL,
    expires_at REAL,
    sent_count INTEGER NOT NULL DEFAULT 0,
    is_automatic INTEGER NOT NULL DEFAULT 0,
    source_data TEXT,
    station_id TEXT,
    created_by TEXT
);
CREATE INDEX IF NOT EXISTS idx_alerts_dedup ON alerts(domain_type, level, station_id, is_automatic, sent_at);
CREATE INDEX IF NOT EXISTS idx_alerts_sent ON alerts(sent_at);
"""

_COLUMNS = ("id, level, domain_type, title, message, advice, area, sent_at, expires_at, "
            "sent_count, is_automatic, source_data, station_id, created_by")

_ACTIVE = "(expires_at IS NULL OR expires_at > ?)"
_EXPIRED = "(expires_at IS NOT NULL AND expires_at <= ?)"


def _row_to_record(row) -> AlertRecord:
    return AlertRecord(
        id=row[0],
        level=row[1],
        domain_type=row[2],
        title=row[3],
        message=row[4],
        advice=row[5],
        area=Polygon.model_validate_json(row[6]) if row[6] else None,
        sent_at=from_epoch(row[7]),
        expires_at=from_epoch(row[8]) if row[8] is not None else None,
        sent_count=row[9],
        is_automatic=bool(row[10]),
        source_data=SourceData.model_validate_json(row[11]) if row[11] else None,
        station_id=row[12],
        created_by=row[13],
    )


class SQLiteAlertStore:
    """SQLite 기반 경보 기록 저장소"""

    def __init__(self, path: str):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLiteAlertStore 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info(f"SQLiteAlertStore 스키마 초기화 완료: {self.path}")

    async def create(self, record: AlertRecord) -> AlertRecord:
        """
        경보 기록을 저장합니다.

        Raises:
            ConflictError: 같은 ID의 기록이 이미 있음
        """
        try:
            async with aiosqlite.connect(self.path) as db:
                await db.execute(
                    f"INSERT INTO alerts ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        record.id, record.level, record.domain_type, record.title, record.message,
                        record.advice,
                        record.area.model_dump_json() if record.area else None,
                        to_epoch(record.sent_at),
                        to_epoch(record.expires_at) if record.expires_at else None,
                        record.sent_count,
                        1 if record.is_automatic else 0,
                        record.source_data.model_dump_json() if record.source_data else None,
                        record.station_id,
                        record.created_by,
                    )
                )
                await db.commit()
        except aiosqlite.IntegrityError as e:
            raise ConflictError(f"이미 존재하는 경보 ID입니다: {record.id}") from e
        return record

    async def get(self, alert_id: str) -> Optional[AlertRecord]:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(f"SELECT {_COLUMNS} FROM alerts WHERE id = ?", (alert_id,))
            row = await cursor.fetchone()
            return _row_to_record(row) if row else None

    async def find_duplicate(self, domain_type: str, level: str, station_id: str,
                             since: datetime) -> Optional[AlertRecord]:
        """
        since 이후에 발송된 같은 키의 자동 경보를 조회합니다.

        Args:
            domain_type: 경보 도메인
            level: 경보 레벨
            station_id: 관측소 ID
            since: 기준 시각 (이 시각 이후만 포함)

        Returns:
            가장 최근의 중복 경보 또는 None
        """
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM alerts WHERE domain_type = ? AND level = ? "
                "AND station_id = ? AND is_automatic = 1 AND sent_at > ? "
                "ORDER BY sent_at DESC LIMIT 1",
                (domain_type, level, station_id, to_epoch(since))
            )
            row = await cursor.fetchone()
            return _row_to_record(row) if row else None

    async def list_active(self, now: datetime, limit: int = 10) -> List[AlertRecord]:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM alerts WHERE {_ACTIVE} ORDER BY sent_at DESC LIMIT ?",
                (to_epoch(now), limit)
            )
            rows = await cursor.fetchall()
            return [_row_to_record(r) for r in rows]

    async def list_alerts(self, *, page: int = 1, limit: int = 10, level: Optional[str] = None,
                          domain_type: Optional[str] = None, status: Optional[str] = None,
                          now: Optional[datetime] = None,
                          start: Optional[datetime] = None,
                          end: Optional[datetime] = None) -> Tuple[List[AlertRecord], int]:
        """
        경보 이력을 필터와 페이지 단위로 조회합니다.

        Args:
            page: 1부터 시작하는 페이지 번호
            limit: 페이지 크기
            level: 레벨 필터
            domain_type: 도메인 필터
            status: "active" | "expired"
            now: status 판정 기준 시각
            start: sent_at 하한 (start와 end 모두 있을 때만 적용)
            end: sent_at 상한

        Returns:
            (경보 목록, 전체 건수)
        """
        clauses: List[str] = []
        params: List[object] = []
        now_ts = to_epoch(now or utc_now())

        if level:
            clauses.append("level = ?")
            params.append(level)
        if domain_type:
            clauses.append("domain_type = ?")
            params.append(domain_type)
        if status == "active":
            clauses.append(_ACTIVE)
            params.append(now_ts)
        elif status == "expired":
            clauses.append(_EXPIRED)
            params.append(now_ts)
        if start and end:
            clauses.append("sent_at BETWEEN ? AND ?")
            params.extend([to_epoch(start), to_epoch(end)])

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        offset = (max(1, page) - 1) * limit

        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(f"SELECT COUNT(*) FROM alerts{where}", params)
            total = (await cursor.fetchone())[0]
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM alerts{where} ORDER BY sent_at DESC LIMIT ? OFFSET ?",
                [*params, limit, offset]
            )
            rows = await cursor.fetchall()
            return [_row_to_record(r) for r in rows], total

    async def count_all(self) -> int:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM alerts")
            result = await cursor.fetchone()
            return result[0] if result else 0

    async def count_by_level(self) -> Dict[str, int]:
        """레벨별 경보 수 (없는 레벨은 0)"""
        counts = {level: 0 for level in ALERT_LEVELS}
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT level, COUNT(*) FROM alerts GROUP BY level")
            for level, count in await cursor.fetchall():
                if level in counts:
                    counts[level] = count
        return counts

    async def count_per_day_last_n_days(self, n: int, now: datetime) -> List[Dict[str, object]]:
        """
        최근 n일간 일자별(UTC) 경보 수를 반환합니다.

        경보가 없는 날은 포함되지 않습니다.
        """
        since = to_epoch(now - timedelta(days=n))
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "SELECT date(sent_at, 'unixepoch') AS day, COUNT(*) FROM alerts "
                "WHERE sent_at >= ? GROUP BY day ORDER BY day ASC",
                (since,)
            )
            rows = await cursor.fetchall()
            return [{"date": day, "count": count} for day, count in rows]
