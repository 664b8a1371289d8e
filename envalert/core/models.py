"""
Core domain models for envalert.

This module defines threshold rules, metric snapshots, alert records
and the dispatch result types using Pydantic v2 for type safety and
validation.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator

# 경보 도메인 / 연산자 / 레벨 타입 정의
DomainType = Literal["AIR_QUALITY", "WEATHER", "DISASTER", "ENVIRONMENTAL"]
Operator = Literal["GT", "GTE", "LT", "LTE"]
AlertLevel = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]
Metric = Literal[
    "aqi", "pm2_5", "pm10", "co", "no2", "o3", "so2",
    "temperature", "humidity", "wind_speed", "precipitation", "uv_index",
]

ALERT_LEVELS: Tuple[str, ...] = ("LOW", "MEDIUM", "HIGH", "CRITICAL")

# 스케줄러가 주기적으로 측정값을 가져오는 도메인
MONITORED_DOMAINS: Tuple[str, ...] = ("AIR_QUALITY", "WEATHER")


class Location(BaseModel):
    """관측소 / 사용자 좌표"""
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class Polygon(BaseModel):
    """GeoJSON Polygon (단일 닫힌 링, [lon, lat] 순서)"""
    type: Literal["Polygon"] = "Polygon"
    coordinates: List[List[List[float]]]

    @field_validator("coordinates")
    @classmethod
    def _single_closed_ring(cls, v: List[List[List[float]]]) -> List[List[List[float]]]:
        if len(v) != 1:
            raise ValueError("폴리곤은 정확히 하나의 링을 가져야 합니다")
        ring = v[0]
        if len(ring) < 4:
            raise ValueError("링은 최소 4개의 좌표가 필요합니다")
        if any(len(p) != 2 for p in ring):
            raise ValueError("좌표는 [lon, lat] 쌍이어야 합니다")
        if ring[0] != ring[-1]:
            raise ValueError("링의 첫 좌표와 마지막 좌표가 같아야 합니다")
        return v

    @property
    def ring(self) -> List[List[float]]:
        return self.coordinates[0]


class ThresholdRuleCreate(BaseModel):
    """임계값 규칙 생성 요청"""
    domain_type: DomainType
    metric: Metric
    operator: Operator
    threshold_value: float = Field(ge=0)
    level: AlertLevel
    advice_template: str = Field(min_length=1)
    is_active: bool = True


class ThresholdRuleUpdate(BaseModel):
    """임계값 규칙 부분 수정 요청 (patch)"""
    domain_type: Optional[DomainType] = None
    metric: Optional[Metric] = None
    operator: Optional[Operator] = None
    threshold_value: Optional[float] = Field(default=None, ge=0)
    level: Optional[AlertLevel] = None
    advice_template: Optional[str] = Field(default=None, min_length=1)
    is_active: Optional[bool] = None


class ThresholdRule(ThresholdRuleCreate):
    """저장된 임계값 규칙"""
    id: str
    created_at: datetime
    updated_at: datetime

    @property
    def key(self) -> Tuple[str, str, str, float]:
        """(domain_type, metric, operator, threshold_value) 고유 키"""
        return (self.domain_type, self.metric, self.operator, self.threshold_value)


class MetricSnapshot(BaseModel):
    """관측소 한 곳의 현재 측정값 (틱마다 새로 생성)"""
    station_id: str
    station_name: Optional[str] = None
    location: Optional[Location] = None
    values: Dict[str, Any] = Field(default_factory=dict)


class Breach(BaseModel):
    """활성 규칙을 만족한 관측값"""
    rule: ThresholdRule
    snapshot: MetricSnapshot
    observed_value: float

    @property
    def dedup_key(self) -> Tuple[str, str, str]:
        return (self.rule.domain_type, self.rule.level, self.snapshot.station_id)


class SourceData(BaseModel):
    metric: str
    value: float
    threshold: float
    operator: Operator
    timestamp: datetime


class AlertRecord(BaseModel):
    """발송된 경보 기록 (생성 후 불변)"""
    model_config = ConfigDict(frozen=True)

    id: str
    level: AlertLevel
    domain_type: DomainType
    title: str
    message: str
    advice: Optional[str] = None
    area: Optional[Polygon] = None
    sent_at: datetime
    expires_at: Optional[datetime] = None
    sent_count: int = Field(default=0, ge=0)
    is_automatic: bool = False
    source_data: Optional[SourceData] = None
    station_id: Optional[str] = None
    created_by: Optional[str] = None


class ManualAlertCreate(BaseModel):
    """운영자가 직접 작성하는 경보"""
    level: AlertLevel
    domain_type: DomainType
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    advice: Optional[str] = None
    area: Optional[Polygon] = None
    expires_at: Optional[datetime] = None


class AudienceMember(BaseModel):
    user_id: str
    token: str


class PushPayload(BaseModel):
    title: str
    body: str
    data: Dict[str, str] = Field(default_factory=dict)


class DispatchResult(BaseModel):
    success_count: int = Field(default=0, ge=0)
    failed_tokens: List[str] = Field(default_factory=list)


class DomainReport(BaseModel):
    """한 도메인의 틱 처리 결과"""
    domain_type: str
    snapshots: int = 0
    breaches: int = 0
    created: int = 0
    suppressed: int = 0
    error: Optional[str] = None


class TickReport(BaseModel):
    started_at: datetime
    finished_at: Optional[datetime] = None
    skipped: bool = False
    domains: Dict[str, DomainReport] = Field(default_factory=dict)

    @property
    def failed_domains(self) -> List[str]:
        return [d for d, r in self.domains.items() if r.error]


class SweepReport(BaseModel):
    checked: int = 0
    invalid: int = 0
    cleaned_count: int = 0
