# envalert/settings.py
from __future__ import annotations
from typing import Literal
from pydantic import BaseModel, Field

class AlertEngine(BaseModel):
    enabled: bool = True
    tick_interval_sec: int = 600              # 10분
    tick_timeout_sec: int = 300
    call_timeout_sec: float = 30.0
    dedup_window_hours: float = 2.0
    auto_alert_ttl_hours: float = 4.0
    area_radius_km: float = 10.0
    audience_buffer_km: float = 5.0
    max_concurrency: int = 8
    locale: str = "vi"                        # vi | en

class TokenSweep(BaseModel):
    enabled: bool = True
    interval_sec: int = 86400                 # 매일
    batch_size: int = 100

class Upstream(BaseModel):
    base_url: str = "http://localhost:8000/api/v1"
    timeout_sec: int = 30
    max_retries: int = 3

class Push(BaseModel):
    provider: Literal["expo", "log"] = "expo"
    url: str = "https://exp.host/--/api/v2/push/send"
    timeout_sec: int = 30
    batch_size: int = 100
    access_token: str | None = None

class Storage(BaseModel):
    db_path: str = "/data/envalert.db"
    seed_defaults: bool = True

class Observability(BaseModel):
    http_port: int = 8099
    metrics_enabled: bool = True
    service_name: str = "envalert"
    build_version: str = "0.2.0"
    build_date: str = "2026-10-01"
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

class Settings(BaseModel):
    # 상위 플래그(옵션)
    dry_run: bool = False

    # 하위 섹션 (기본값/팩토리로 누락 방지)
    engine: AlertEngine = Field(default_factory=AlertEngine)
    token_sweep: TokenSweep = Field(default_factory=TokenSweep)
    upstream: Upstream = Field(default_factory=Upstream)
    push: Push = Field(default_factory=Push)
    storage: Storage = Field(default_factory=Storage)
    observability: Observability = Field(default_factory=Observability)
