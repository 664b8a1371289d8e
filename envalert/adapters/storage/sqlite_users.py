"""
SQLite-based user audience registry for envalert.

This module keeps each user's last known location and push token and
answers the geographic audience queries. The within-distance predicate
runs in Python after a bounding-box prefilter in SQL.
"""

import math
import time
import aiosqlite
from typing import List, Optional, Sequence
from envalert.common.geo import calculate_bounding_box, is_point_within_distance
from envalert.core.geo_buffer import KM_PER_DEGREE
from envalert.core.models import AudienceMember, Polygon
from envalert.observability.logging_setup import get_logger

log = get_logger("envalert.users")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    push_token TEXT,
    token_updated_at REAL,
    lat REAL,
    lon REAL,
    is_active INTEGER NOT NULL DEFAULT 1
);
CREATE INDEX IF NOT EXISTS idx_users_location ON users(lat, lon);
"""

_HAS_TOKEN = "push_token IS NOT NULL AND push_token != ''"


class SQLiteUserRegistry:
    """SQLite 기반 사용자 수신자 레지스트리"""

    def __init__(self, path: str):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLiteUserRegistry 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info(f"SQLiteUserRegistry 스키마 초기화 완료: {self.path}")

    async def upsert_user(self, user_id: str, push_token: Optional[str] = None,
                          lat: Optional[float] = None, lon: Optional[float] = None,
                          is_active: bool = True) -> None:
        """
        사용자를 추가하거나 갱신합니다.

        Args:
            user_id: 사용자 ID
            push_token: 디바이스 푸시 토큰
            lat: 마지막 위치 위도
            lon: 마지막 위치 경도
            is_active: 활성 여부
        """
        async with aiosqlite.connect(self.path) as db:
            await db.execute(
                "INSERT INTO users (id, push_token, token_updated_at, lat, lon, is_active) "
                "VALUES (?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET push_token = excluded.push_token, "
                "token_updated_at = excluded.token_updated_at, lat = excluded.lat, "
                "lon = excluded.lon, is_active = excluded.is_active",
                (user_id, push_token, time.time() if push_token else None,
                 lat, lon, 1 if is_active else 0)
            )
            await db.commit()

    async def get_token(self, user_id: str) -> Optional[str]:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT push_token FROM users WHERE id = ?", (user_id,))
            row = await cursor.fetchone()
            return row[0] if row else None

    async def find_within_buffer(self, polygon: Polygon, buffer_km: float) -> List[AudienceMember]:
        """
        폴리곤에서 buffer_km 이내에 있는 활성 사용자를 조회합니다.

        Args:
            polygon: 경보 영역
            buffer_km: 추가 여유 거리 (킬로미터)

        Returns:
            토큰이 있는 수신자 목록
        """
        ring = polygon.ring
        min_lon, min_lat, max_lon, max_lat = calculate_bounding_box(ring)

        # 경계 상자를 버퍼만큼 넓혀 1차 필터링
        buffer_km = max(0.0, buffer_km)
        dlat = buffer_km / KM_PER_DEGREE
        widest = max(abs(min_lat), abs(max_lat)) + dlat
        cos_lat = max(math.cos(math.radians(min(widest, 89.0))), 1e-6)
        dlon = buffer_km / (KM_PER_DEGREE * cos_lat)

        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                f"SELECT id, push_token, lat, lon FROM users WHERE is_active = 1 AND {_HAS_TOKEN} "
                "AND lat IS NOT NULL AND lon IS NOT NULL "
                "AND lat BETWEEN ? AND ? AND lon BETWEEN ? AND ?",
                (min_lat - dlat, max_lat + dlat, min_lon - dlon, max_lon + dlon)
            )
            rows = await cursor.fetchall()

        members = [
            AudienceMember(user_id=uid, token=token)
            for uid, token, lat, lon in rows
            if is_point_within_distance((lon, lat), ring, buffer_km)
        ]
        log.debug(f"영역 내 수신자 조회 candidates:{len(rows)} matched:{len(members)}")
        return members

    async def find_all_active_with_tokens(self) -> List[AudienceMember]:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                f"SELECT id, push_token FROM users WHERE is_active = 1 AND {_HAS_TOKEN} ORDER BY id"
            )
            rows = await cursor.fetchall()
            return [AudienceMember(user_id=uid, token=token) for uid, token in rows]

    async def clear_token(self, user_id: str, token: Optional[str] = None) -> bool:
        """
        사용자의 토큰을 제거합니다.

        Args:
            user_id: 사용자 ID
            token: 주어지면 저장된 토큰이 같을 때만 제거

        Returns:
            제거 여부
        """
        query = "UPDATE users SET push_token = NULL, token_updated_at = ? WHERE id = ?"
        params: List[object] = [time.time(), user_id]
        if token is not None:
            query += " AND push_token = ?"
            params.append(token)

        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(query, params)
            await db.commit()
            return cursor.rowcount > 0

    async def clear_tokens(self, user_ids: Sequence[str], tokens: Optional[Sequence[str]] = None) -> int:
        """
        여러 사용자의 토큰을 한 번에 제거합니다.

        Args:
            user_ids: 사용자 ID 목록
            tokens: 주어지면 저장된 토큰이 이 목록에 있을 때만 제거

        Returns:
            제거된 토큰 수
        """
        if not user_ids:
            return 0

        marks = ", ".join("?" for _ in user_ids)
        query = f"UPDATE users SET push_token = NULL, token_updated_at = ? WHERE id IN ({marks}) AND {_HAS_TOKEN}"
        params: List[object] = [time.time(), *user_ids]
        if tokens is not None:
            if not tokens:
                return 0
            query += f" AND push_token IN ({', '.join('?' for _ in tokens)})"
            params.extend(tokens)

        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(query, params)
            await db.commit()
            return cursor.rowcount

    async def count_tokens(self) -> int:
        """저장된 (비어 있지 않은) 토큰 수"""
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(f"SELECT COUNT(*) FROM users WHERE {_HAS_TOKEN}")
            result = await cursor.fetchone()
            return result[0] if result else 0
