"""
Threshold evaluation for envalert.

This module contains pure functions that map metric snapshots to rule
breaches. Each monitored domain has a fixed metric-name-to-field mapping;
a metric that cannot be resolved for a station is treated as "no data".
"""

import math
import operator as op
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple
from envalert.core.models import Breach, MetricSnapshot, ThresholdRule

# 연산자 정의 (GTE/LTE는 경계 포함, GT/LT는 경계 제외)
OPERATORS: Dict[str, Callable[[float, float], bool]] = {
    "GT": op.gt,
    "GTE": op.ge,
    "LT": op.lt,
    "LTE": op.le,
}

# 도메인별 지표 -> 스냅샷 필드 경로 (앞쪽 경로 우선)
METRIC_FIELDS: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "AIR_QUALITY": {
        "aqi": ("aqi.openWeather.index", "aqi.epaUS.index", "aqi"),
        "pm2_5": ("pollutants.pm25", "pm2_5"),
        "pm10": ("pollutants.pm10", "pm10"),
        "co": ("pollutants.co", "co"),
        "no2": ("pollutants.no2", "no2"),
        "o3": ("pollutants.o3", "o3"),
        "so2": ("pollutants.so2", "so2"),
    },
    "WEATHER": {
        "temperature": ("temperature.current", "temperature"),
        "humidity": ("atmospheric.humidity", "humidity"),
        "wind_speed": ("wind.speed", "wind_speed"),
        "precipitation": ("precipitation",),
        "uv_index": ("uvIndex", "uv_index"),
    },
}


def compare(value: float, operator: str, threshold: float) -> bool:
    """
    관측값과 임계값을 연산자로 비교합니다.

    Args:
        value: 관측값
        operator: GT | GTE | LT | LTE
        threshold: 임계값

    Returns:
        관계가 성립하면 True, 알 수 없는 연산자는 항상 False
    """
    fn = OPERATORS.get(operator)
    if fn is None:
        return False
    return fn(value, threshold)


def _lookup(doc: Mapping[str, Any], path: str) -> Any:
    node: Any = doc
    for part in path.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    return node


def extract_metric(domain_type: str, metric: str, values: Mapping[str, Any]) -> Optional[float]:
    """
    스냅샷에서 지표 값을 추출합니다.

    Args:
        domain_type: 경보 도메인
        metric: 지표 이름
        values: 관측소 측정 문서

    Returns:
        숫자 값, 매핑이 없거나 값이 없으면 None
    """
    paths = METRIC_FIELDS.get(domain_type, {}).get(metric)
    if not paths:
        return None

    for path in paths:
        raw = _lookup(values, path)
        # bool은 int의 하위 타입이므로 먼저 제외
        if raw is None or isinstance(raw, bool) or not isinstance(raw, (int, float)):
            continue
        if math.isnan(raw):
            continue
        return float(raw)

    return None


def evaluate(rules: Iterable[ThresholdRule], snapshots: Iterable[MetricSnapshot]) -> List[Breach]:
    """
    활성 규칙과 스냅샷 목록으로 임계값 초과 목록을 계산합니다.

    부작용이 없는 순수 함수입니다.

    Args:
        rules: 평가할 규칙
        snapshots: 관측소별 현재 측정값

    Returns:
        (rule, snapshot, observed_value) Breach 목록
    """
    active = [r for r in rules if r.is_active]
    breaches: List[Breach] = []

    for snapshot in snapshots:
        for rule in active:
            value = extract_metric(rule.domain_type, rule.metric, snapshot.values)
            if value is None:
                continue
            if compare(value, rule.operator, rule.threshold_value):
                breaches.append(Breach(rule=rule, snapshot=snapshot, observed_value=value))

    return breaches


class ThresholdEvaluator:
    """스케줄러에 주입되는 평가기"""

    def evaluate(self, rules: Iterable[ThresholdRule], snapshots: Iterable[MetricSnapshot]) -> List[Breach]:
        return evaluate(rules, snapshots)
