"""
경보 문구 / 라벨 테스트
"""

import json
from datetime import timedelta
from envalert.core.content import AlertContentTemplate, build_push_payload, format_number
from envalert.core.geo_buffer import build_buffer_polygon
from envalert.core.labels import label_for, template_for
from envalert.core.models import AlertRecord, Breach
from tests.helpers import T0, make_rule, make_snapshot


def _breach(value=160.0, metric="aqi", domain="AIR_QUALITY", level="HIGH", threshold=150.0):
    rule = make_rule(domain_type=domain, metric=metric, level=level, threshold_value=threshold)
    return Breach(rule=rule, snapshot=make_snapshot("S1"), observed_value=value)


class TestLabels:
    """라벨 조회 테스트"""

    def test_vietnamese_default(self):
        assert label_for("level", "HIGH") == "cao"
        assert label_for("domain", "AIR_QUALITY") == "Chất lượng không khí"
        assert label_for("metric", "pm2_5") == "Nồng độ PM2.5"

    def test_english_table(self):
        assert label_for("level", "CRITICAL", "en") == "critical"

    def test_unknown_locale_falls_back_to_default(self):
        assert label_for("level", "LOW", "ko") == "thấp"
        assert template_for("title", "xx") == template_for("title", "vi")

    def test_unknown_key_returns_key(self):
        assert label_for("metric", "radon") == "radon"


class TestAlertContentTemplate:
    """자동 경보 문구 테스트"""

    def test_title_format(self):
        title, _ = AlertContentTemplate("vi").auto_alert(_breach())
        assert title == "⚠️ Cảnh báo Chất lượng không khí - Mức cao"

    def test_message_rounds_value_to_one_decimal(self):
        _, message = AlertContentTemplate("vi").auto_alert(_breach(value=162.456))
        assert "162.5" in message
        assert "(150)" in message
        assert message.startswith("Chỉ số AQI")

    def test_english_locale(self):
        title, message = AlertContentTemplate("en").auto_alert(_breach(domain="WEATHER", metric="temperature",
                                                                      level="MEDIUM", value=38, threshold=37))
        assert title == "⚠️ Weather alert - medium level"
        assert "Temperature reached 38.0" in message

    def test_validation_payload(self):
        payload = AlertContentTemplate("en").validation_payload()
        assert payload.title == "Token Validation"
        assert payload.data == {}

    def test_format_number(self):
        assert format_number(150.0) == "150"
        assert format_number(35.5) == "35.5"


class TestBuildPushPayload:
    """푸시 페이로드 테스트"""

    def test_auto_alert_payload_is_string_only(self):
        area = build_buffer_polygon(21.0, 105.8, 10)
        record = AlertRecord(
            id="a1", level="HIGH", domain_type="AIR_QUALITY", title="t", message="m",
            advice="stay inside", area=area, sent_at=T0, expires_at=T0 + timedelta(hours=4),
            is_automatic=True, station_id="S1",
        )

        payload = build_push_payload(record)

        assert payload.title == "t" and payload.body == "m"
        assert all(isinstance(v, str) for v in payload.data.values())
        assert payload.data["alertId"] == "a1"
        assert payload.data["isAutomatic"] == "true"
        assert payload.data["stationId"] == "S1"
        assert json.loads(payload.data["area"])["type"] == "Polygon"

    def test_manual_broadcast_payload(self):
        record = AlertRecord(id="m1", level="LOW", domain_type="DISASTER", title="t", message="m", sent_at=T0)

        payload = build_push_payload(record)

        assert payload.data["area"] == ""
        assert payload.data["advice"] == ""
        assert "isAutomatic" not in payload.data
