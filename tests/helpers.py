"""테스트 공용 헬퍼"""

from datetime import datetime, timedelta, timezone
from envalert.core.models import Location, MetricSnapshot, ThresholdRule

T0 = datetime(2026, 3, 1, tzinfo=timezone.utc)


class FakeClock:
    """테스트용 고정 시계"""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_rule(domain_type="AIR_QUALITY", metric="aqi", operator="GT", threshold_value=150.0,
              level="HIGH", is_active=True, rule_id="rule-1", advice="Hạn chế ra ngoài") -> ThresholdRule:
    return ThresholdRule(
        id=rule_id, domain_type=domain_type, metric=metric, operator=operator,
        threshold_value=threshold_value, level=level, advice_template=advice,
        is_active=is_active, created_at=T0, updated_at=T0,
    )


def make_snapshot(station_id="S1", values=None, lat=21.0, lon=105.8, with_location=True) -> MetricSnapshot:
    return MetricSnapshot(
        station_id=station_id,
        station_name=f"Station {station_id}",
        location=Location(lat=lat, lon=lon) if with_location else None,
        values=values or {},
    )
