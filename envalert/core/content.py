"""
Alert content templates for envalert.

This module turns breaches and alert records into push notification
title/body text and the string-only data payload delivered to devices.
"""

import json
from typing import Dict, Tuple
from envalert.core.labels import DEFAULT_LOCALE, label_for, template_for
from envalert.core.models import AlertRecord, Breach, PushPayload


def format_number(value: float) -> str:
    """정수 값은 소수점 없이, 그 외에는 그대로 표시합니다."""
    return f"{value:g}"


class AlertContentTemplate:
    """자동 경보 메시지 템플릿"""

    def __init__(self, locale: str = DEFAULT_LOCALE):
        """
        초기화합니다.

        Args:
            locale: 언어 코드 (vi, en)
        """
        self.locale = locale

    def auto_alert(self, breach: Breach) -> Tuple[str, str]:
        """
        자동 경보의 제목과 본문을 생성합니다.

        Args:
            breach: 임계값 초과 정보

        Returns:
            (title, message)
        """
        rule = breach.rule
        title = template_for("title", self.locale).format(
            domain=label_for("domain", rule.domain_type, self.locale),
            level=label_for("level", rule.level, self.locale),
        )
        message = template_for("message", self.locale).format(
            metric=label_for("metric", rule.metric, self.locale),
            value=f"{breach.observed_value:.1f}",
            threshold=format_number(rule.threshold_value),
        )
        return title, message

    def validation_payload(self) -> PushPayload:
        """토큰 검증용 dry-run 페이로드"""
        return PushPayload(
            title=template_for("validation_title", self.locale),
            body=template_for("validation_body", self.locale),
        )


def build_push_payload(record: AlertRecord) -> PushPayload:
    """
    경보 기록으로 푸시 페이로드를 생성합니다.

    data 값은 모두 문자열이어야 합니다.
    """
    data: Dict[str, str] = {
        "alertId": record.id,
        "level": record.level,
        "type": record.domain_type,
        "advice": record.advice or "",
        "stationId": record.station_id or "",
        "area": json.dumps(record.area.model_dump()) if record.area else "",
    }
    if record.is_automatic:
        data["isAutomatic"] = "true"
    return PushPayload(title=record.title, body=record.message, data=data)
