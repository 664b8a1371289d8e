"""
HTTP metric sampler for envalert.

This module fetches the current per-station readings from the telemetry
API and converts them into MetricSnapshot objects.
"""

import asyncio
import aiohttp
from typing import Any, Dict, List, Optional
from envalert.common.retry import retry_with_backoff
from envalert.core.errors import UpstreamFetchError
from envalert.core.models import Location, MetricSnapshot
from envalert.observability.logging_setup import get_logger

log = get_logger("envalert.sampler")

# 도메인별 현재값 엔드포인트
DOMAIN_PATHS: Dict[str, str] = {
    "AIR_QUALITY": "/air-quality/current",
    "WEATHER": "/weather/current",
}


def parse_location(doc: Dict[str, Any]) -> Optional[Location]:
    """
    측정값 문서에서 좌표를 추출합니다.

    {"lat", "lon"} 또는 GeoJSON Point({"type": "Point", "coordinates": [lon, lat]})를 지원합니다.
    """
    loc = doc.get("location")
    if not isinstance(loc, dict):
        return None
    try:
        if loc.get("type") == "Point":
            lon, lat = loc["coordinates"][:2]
        else:
            lat, lon = loc["lat"], loc.get("lon", loc.get("lng"))
        return Location(lat=float(lat), lon=float(lon))
    except (KeyError, TypeError, ValueError):
        return None


def parse_snapshot(doc: Dict[str, Any]) -> Optional[MetricSnapshot]:
    """측정값 문서 하나를 MetricSnapshot으로 변환합니다 (관측소 ID가 없으면 None)."""
    station_id = doc.get("stationId") or doc.get("id")
    if not station_id:
        return None
    return MetricSnapshot(
        station_id=str(station_id),
        station_name=doc.get("stationName") or doc.get("name"),
        location=parse_location(doc),
        values=doc,
    )


class HttpMetricSampler:
    """텔레메트리 API 기반 측정값 샘플러"""

    def __init__(self, base_url: str, timeout: int = 30, max_retries: int = 3):
        """
        초기화합니다.

        Args:
            base_url: 텔레메트리 API 기본 URL
            timeout: 요청 타임아웃 (초)
            max_retries: 최대 재시도 횟수
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.session: Optional[aiohttp.ClientSession] = None

        log.info(f"HTTP 샘플러 초기화됨 base_url:{self.base_url}")

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        if self.session is None:
            self.session = aiohttp.ClientSession(
                headers={"Accept": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None

    async def _get(self, path: str) -> Any:
        await self.start()
        url = f"{self.base_url}{path}"

        async def _request():
            async with self.session.get(url) as response:
                response.raise_for_status()
                return await response.json()

        return await retry_with_backoff(
            _request,
            max_retries=self.max_retries,
            retry_on=(aiohttp.ClientError, asyncio.TimeoutError),
        )

    async def fetch_current(self, domain_type: str) -> List[MetricSnapshot]:
        """
        도메인의 현재 측정값을 가져옵니다.

        Args:
            domain_type: AIR_QUALITY | WEATHER

        Returns:
            MetricSnapshot 목록 (지원하지 않는 도메인은 빈 목록)

        Raises:
            UpstreamFetchError: API 호출 실패
        """
        path = DOMAIN_PATHS.get(domain_type)
        if path is None:
            return []

        try:
            body = await self._get(path)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamFetchError(f"{domain_type} 측정값 조회 실패: {e}") from e

        docs = body.get("data", []) if isinstance(body, dict) else body
        if not isinstance(docs, list):
            raise UpstreamFetchError(f"{domain_type} 응답 형식이 올바르지 않습니다")

        snapshots = [s for s in (parse_snapshot(d) for d in docs if isinstance(d, dict)) if s]
        log.debug(f"측정값 수신 domain:{domain_type} stations:{len(snapshots)}")
        return snapshots
