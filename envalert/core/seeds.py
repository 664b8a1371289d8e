"""
Default threshold rules for envalert.

Loaded on first start when the rule table is empty.
"""

from typing import List
from envalert.core.models import ThresholdRuleCreate

DEFAULT_RULES: List[ThresholdRuleCreate] = [
    # 대기질
    ThresholdRuleCreate(
        domain_type="AIR_QUALITY", metric="aqi", operator="GT", threshold_value=180, level="HIGH",
        advice_template="Chất lượng không khí ở mức kém. Hạn chế hoạt động ngoài trời, đeo khẩu trang N95 khi ra ngoài.",
    ),
    ThresholdRuleCreate(
        domain_type="AIR_QUALITY", metric="aqi", operator="GT", threshold_value=240, level="CRITICAL",
        advice_template="Chất lượng không khí rất xấu! Ở trong nhà, đóng cửa sổ, sử dụng máy lọc không khí nếu có.",
    ),
    ThresholdRuleCreate(
        domain_type="AIR_QUALITY", metric="pm2_5", operator="GT", threshold_value=150, level="CRITICAL",
        advice_template="Nồng độ PM2.5 cực kỳ cao! Ở trong nhà với cửa đóng kín, sử dụng máy lọc không khí.",
    ),
    ThresholdRuleCreate(
        domain_type="AIR_QUALITY", metric="pm10", operator="GT", threshold_value=150, level="HIGH",
        advice_template="Nồng độ PM10 cao. Hạn chế hoạt động ngoài trời kéo dài, đặc biệt với trẻ em và người già.",
    ),
    # 기상
    ThresholdRuleCreate(
        domain_type="WEATHER", metric="temperature", operator="GT", threshold_value=37, level="MEDIUM",
        advice_template="Nhiệt độ cao. Hạn chế hoạt động ngoài trời từ 11h-15h, uống nhiều nước.",
    ),
    ThresholdRuleCreate(
        domain_type="WEATHER", metric="temperature", operator="GT", threshold_value=40, level="HIGH",
        advice_template="Nắng nóng gay gắt! Tránh ra ngoài, uống đủ nước, chú ý dấu hiệu say nắng.",
    ),
    ThresholdRuleCreate(
        domain_type="WEATHER", metric="temperature", operator="LT", threshold_value=10, level="MEDIUM",
        advice_template="Trời rét. Mặc ấm khi ra ngoài, chú ý giữ ấm cho trẻ em và người già.",
    ),
    ThresholdRuleCreate(
        domain_type="WEATHER", metric="wind_speed", operator="GT", threshold_value=20, level="HIGH",
        advice_template="Gió rất mạnh! Hạn chế ra ngoài, gia cố cửa sổ và các vật dụng ngoài trời.",
    ),
    ThresholdRuleCreate(
        domain_type="WEATHER", metric="precipitation", operator="GT", threshold_value=50, level="HIGH",
        advice_template="Mưa rất to! Hạn chế di chuyển, cảnh giác ngập úng và sạt lở đất.",
    ),
    ThresholdRuleCreate(
        domain_type="WEATHER", metric="precipitation", operator="GT", threshold_value=100, level="CRITICAL",
        advice_template="Mưa đặc biệt to! Không ra ngoài, di chuyển đến nơi cao nếu ở vùng trũng.",
    ),
]
