"""
Localized label tables for envalert alert content.

Labels live in static per-locale tables so alert text can be swapped per
target locale without touching control flow.
"""

from typing import Dict, Literal

LabelKind = Literal["metric", "level", "domain"]

DEFAULT_LOCALE = "vi"

LABELS: Dict[str, Dict[str, Dict[str, str]]] = {
    "vi": {
        "metric": {
            "aqi": "Chỉ số AQI",
            "pm2_5": "Nồng độ PM2.5",
            "pm10": "Nồng độ PM10",
            "co": "Nồng độ CO",
            "no2": "Nồng độ NO₂",
            "o3": "Nồng độ O₃",
            "so2": "Nồng độ SO₂",
            "temperature": "Nhiệt độ",
            "humidity": "Độ ẩm",
            "wind_speed": "Tốc độ gió",
            "precipitation": "Lượng mưa",
            "uv_index": "Chỉ số UV",
        },
        "level": {
            "LOW": "thấp",
            "MEDIUM": "trung bình",
            "HIGH": "cao",
            "CRITICAL": "khẩn cấp",
        },
        "domain": {
            "AIR_QUALITY": "Chất lượng không khí",
            "WEATHER": "Thời tiết",
            "DISASTER": "Thiên tai",
            "ENVIRONMENTAL": "Môi trường",
        },
    },
    "en": {
        "metric": {
            "aqi": "AQI",
            "pm2_5": "PM2.5 concentration",
            "pm10": "PM10 concentration",
            "co": "CO concentration",
            "no2": "NO₂ concentration",
            "o3": "O₃ concentration",
            "so2": "SO₂ concentration",
            "temperature": "Temperature",
            "humidity": "Humidity",
            "wind_speed": "Wind speed",
            "precipitation": "Precipitation",
            "uv_index": "UV index",
        },
        "level": {
            "LOW": "low",
            "MEDIUM": "medium",
            "HIGH": "high",
            "CRITICAL": "critical",
        },
        "domain": {
            "AIR_QUALITY": "Air quality",
            "WEATHER": "Weather",
            "DISASTER": "Disaster",
            "ENVIRONMENTAL": "Environment",
        },
    },
}

TEMPLATES: Dict[str, Dict[str, str]] = {
    "vi": {
        "title": "⚠️ Cảnh báo {domain} - Mức {level}",
        "message": (
            "{metric} đã đạt mức {value}, vượt ngưỡng cho phép ({threshold}). "
            "Vui lòng thực hiện các biện pháp phòng ngừa cần thiết."
        ),
        "validation_title": "Xác thực thiết bị",
        "validation_body": "Đây là thông báo kiểm tra",
    },
    "en": {
        "title": "⚠️ {domain} alert - {level} level",
        "message": (
            "{metric} reached {value}, exceeding the allowed threshold ({threshold}). "
            "Please take the necessary precautions."
        ),
        "validation_title": "Token Validation",
        "validation_body": "This is a validation message",
    },
}


def label_for(kind: LabelKind, key: str, locale: str = DEFAULT_LOCALE) -> str:
    """
    지표/레벨/도메인 라벨을 조회합니다.

    알 수 없는 로케일은 기본 로케일로, 알 수 없는 키는 키 자체로 대체합니다.
    """
    table = LABELS.get(locale) or LABELS[DEFAULT_LOCALE]
    return table.get(kind, {}).get(key, key)


def template_for(name: str, locale: str = DEFAULT_LOCALE) -> str:
    """메시지 템플릿을 조회합니다."""
    table = TEMPLATES.get(locale) or TEMPLATES[DEFAULT_LOCALE]
    return table[name]
