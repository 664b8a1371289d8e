"""
hypothesis를 활용한 임계값 평가기 테스트

이 모듈은 연산자 경계, 지표 추출, breach 계산의
속성 기반 테스트를 수행합니다.
"""

import math
import pytest
from hypothesis import given, strategies as st, example

from envalert.core.evaluator import METRIC_FIELDS, compare, evaluate, extract_metric, ThresholdEvaluator
from tests.helpers import make_rule, make_snapshot

finite = st.floats(min_value=0, max_value=1e6, allow_nan=False, allow_infinity=False)


class TestCompare:
    """연산자 비교 테스트"""

    @given(value=finite, threshold=finite)
    def test_operator_semantics(self, value: float, threshold: float):
        """각 연산자가 수학적 비교와 일치하는지 테스트"""
        assert compare(value, "GT", threshold) == (value > threshold)
        assert compare(value, "GTE", threshold) == (value >= threshold)
        assert compare(value, "LT", threshold) == (value < threshold)
        assert compare(value, "LTE", threshold) == (value <= threshold)

    @given(threshold=finite)
    def test_boundary_equality(self, threshold: float):
        """경계값: GTE/LTE는 포함, GT/LT는 제외"""
        assert compare(threshold, "GTE", threshold)
        assert compare(threshold, "LTE", threshold)
        assert not compare(threshold, "GT", threshold)
        assert not compare(threshold, "LT", threshold)

    @given(
        value=finite,
        threshold=finite,
        operator=st.text(min_size=0, max_size=5).filter(lambda x: x not in ("GT", "GTE", "LT", "LTE")),
    )
    @example(value=1.0, threshold=0.0, operator="gt")
    @example(value=1.0, threshold=0.0, operator="EQ")
    def test_unknown_operator_never_matches(self, value: float, threshold: float, operator: str):
        """알 수 없는 연산자는 항상 False"""
        assert compare(value, operator, threshold) is False


class TestExtractMetric:
    """지표 추출 테스트"""

    def test_nested_aqi_prefers_openweather(self):
        values = {"aqi": {"openWeather": {"index": 4}, "epaUS": {"index": 160}}}
        assert extract_metric("AIR_QUALITY", "aqi", values) == 4.0

    def test_nested_aqi_falls_back_to_epa(self):
        values = {"aqi": {"openWeather": {"index": None}, "epaUS": {"index": 160}}}
        assert extract_metric("AIR_QUALITY", "aqi", values) == 160.0

    def test_flat_metric_accepted(self):
        assert extract_metric("AIR_QUALITY", "pm2_5", {"pm2_5": 35.5}) == 35.5
        assert extract_metric("WEATHER", "temperature", {"temperature": 38}) == 38.0

    def test_weather_paths(self):
        values = {
            "temperature": {"current": 36.6},
            "atmospheric": {"humidity": 91},
            "wind": {"speed": 17.2},
            "precipitation": 55,
            "uvIndex": 11,
        }
        assert extract_metric("WEATHER", "temperature", values) == 36.6
        assert extract_metric("WEATHER", "humidity", values) == 91.0
        assert extract_metric("WEATHER", "wind_speed", values) == 17.2
        assert extract_metric("WEATHER", "precipitation", values) == 55.0
        assert extract_metric("WEATHER", "uv_index", values) == 11.0

    @pytest.mark.parametrize("raw", [None, "160", True, False, float("nan"), [1], {"x": 1}])
    def test_non_numeric_is_no_data(self, raw):
        """숫자가 아닌 값(불리언 포함)은 데이터 없음"""
        assert extract_metric("AIR_QUALITY", "pm10", {"pollutants": {"pm10": raw}}) is None

    def test_unmapped_domain_is_no_data(self):
        assert extract_metric("DISASTER", "aqi", {"aqi": 500}) is None
        assert extract_metric("WEATHER", "aqi", {"aqi": 500}) is None

    @given(st.sampled_from([(d, m) for d, ms in METRIC_FIELDS.items() for m in ms]))
    def test_missing_metric_is_no_data(self, pair):
        domain, metric = pair
        assert extract_metric(domain, metric, {}) is None


class TestEvaluate:
    """breach 계산 테스트"""

    def test_breach_contains_rule_snapshot_and_value(self):
        rule = make_rule(metric="aqi", operator="GT", threshold_value=150)
        snap = make_snapshot("S1", {"aqi": {"openWeather": {"index": 160}}})

        breaches = evaluate([rule], [snap])

        assert len(breaches) == 1
        assert breaches[0].rule.id == rule.id
        assert breaches[0].snapshot.station_id == "S1"
        assert breaches[0].observed_value == 160.0
        assert breaches[0].dedup_key == ("AIR_QUALITY", "HIGH", "S1")

    def test_inactive_rules_are_skipped(self):
        rule = make_rule(is_active=False)
        snap = make_snapshot("S1", {"aqi": 999})
        assert evaluate([rule], [snap]) == []

    def test_station_without_metric_is_skipped(self):
        rule = make_rule(metric="pm10")
        snaps = [make_snapshot("S1", {"aqi": 999}), make_snapshot("S2", {"pollutants": {"pm10": 300}})]

        breaches = evaluate([rule], snaps)

        assert [b.snapshot.station_id for b in breaches] == ["S2"]

    def test_multiple_rules_same_station(self):
        rules = [
            make_rule(rule_id="high", threshold_value=180, level="HIGH"),
            make_rule(rule_id="critical", threshold_value=240, level="CRITICAL"),
        ]
        snap = make_snapshot("S1", {"aqi": 250})

        breaches = evaluate(rules, [snap])

        assert {b.rule.level for b in breaches} == {"HIGH", "CRITICAL"}

    @given(
        value=finite,
        threshold=finite,
        operator=st.sampled_from(["GT", "GTE", "LT", "LTE"]),
    )
    def test_evaluate_agrees_with_compare(self, value, threshold, operator):
        """breach 발생 여부는 compare 결과와 같다"""
        rule = make_rule(operator=operator, threshold_value=threshold)
        snap = make_snapshot("S1", {"aqi": value})

        breaches = ThresholdEvaluator().evaluate([rule], [snap])

        assert (len(breaches) == 1) == compare(value, operator, threshold)
        if breaches:
            assert math.isclose(breaches[0].observed_value, value)
