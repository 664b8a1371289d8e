"""
HTTP endpoints for envalert.

This module implements the health, readiness, metrics and info endpoints
together with the threshold rule, alert and manual trigger API.
"""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import Body, FastAPI, Header, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import time
from envalert.bootstrap import Engine, build_engine
from envalert.core.errors import (
    ConflictError, DispatchError, EngineError, FatalSchedulerError, NotFoundError,
    SchedulerBusyError, UpstreamFetchError, ValidationError,
)
from envalert.observability import metrics as metric_defs
from envalert.observability.logging_setup import get_logger
from envalert.settings import Settings

log = get_logger("envalert.http")

# 도메인 오류 → HTTP 상태 코드
ERROR_STATUS = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (SchedulerBusyError, 409),
    (UpstreamFetchError, 502),
    (DispatchError, 502),
    (FatalSchedulerError, 500),
)


def _dump(value):
    return jsonable_encoder(value)


def create_app(settings: Settings, engine: Optional[Engine] = None) -> FastAPI:
    """FastAPI 애플리케이션을 생성합니다."""
    engine = engine or build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await engine.init()
        yield

    app = FastAPI(
        title=settings.observability.service_name,
        version=settings.observability.build_version,
        description="Environmental threshold alert engine",
        lifespan=lifespan,
    )
    app.state.engine = engine

    start_time = time.time()

    @app.exception_handler(EngineError)
    async def engine_error_handler(request, exc: EngineError):
        status = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 500)
        if status >= 500:
            log.error(f"요청 처리 실패 path:{request.url.path} error:{str(exc)}")
        return JSONResponse(status_code=status, content={"error": type(exc).__name__, "detail": str(exc)})

    @app.get("/health")
    async def health():
        """헬스 체크 엔드포인트"""
        return JSONResponse({
            "status": "ok",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })

    @app.get("/ready")
    async def ready():
        """레디니스 체크 엔드포인트 (DB 조회 가능 여부)"""
        try:
            rules = await engine.rule_store.count()
        except Exception as e:
            log.error(f"레디니스 체크 실패 error:{str(e)}")
            raise HTTPException(status_code=503, detail="Storage unavailable")
        return JSONResponse({
            "status": "ready",
            "service": settings.observability.service_name,
            "rules": rules,
            "scheduler_busy": engine.scheduler.busy,
            "timestamp": time.time()
        })

    @app.get("/metrics")
    async def metrics():
        """Prometheus 메트릭 엔드포인트"""
        if not settings.observability.metrics_enabled:
            raise HTTPException(status_code=503, detail="Metrics disabled")

        try:
            metric_defs.uptime_seconds.set(time.time() - start_time)
            return Response(
                generate_latest(),
                media_type=CONTENT_TYPE_LATEST
            )
        except Exception as e:
            log.error(f"메트릭 생성 오류: {e}")
            raise HTTPException(status_code=500, detail="Metrics generation failed")

    @app.get("/info")
    async def info():
        """서비스 정보 엔드포인트"""
        uptime = time.time() - start_time
        last = engine.scheduler.last_report
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "build_date": settings.observability.build_date,
            "uptime_seconds": int(uptime),
            "metrics_enabled": settings.observability.metrics_enabled,
            "log_level": settings.observability.log_level,
            "dry_run": settings.dry_run,
            "last_tick": _dump(last.model_dump()) if last else None,
        })

    # ---- 임계값 규칙 ----

    @app.post("/alert/thresholds", status_code=201)
    async def create_threshold(payload: dict = Body(...)):
        rule = await engine.thresholds.create(payload)
        return _dump(rule.model_dump())

    @app.get("/alert/thresholds")
    async def list_thresholds():
        return _dump([r.model_dump() for r in await engine.thresholds.list_all()])

    @app.get("/alert/thresholds/active")
    async def list_active_thresholds():
        return _dump([r.model_dump() for r in await engine.thresholds.list_active()])

    @app.get("/alert/thresholds/{rule_id}")
    async def get_threshold(rule_id: str):
        return _dump((await engine.thresholds.get(rule_id)).model_dump())

    @app.put("/alert/thresholds/{rule_id}")
    async def update_threshold(rule_id: str, payload: dict = Body(...)):
        rule = await engine.thresholds.update(rule_id, payload)
        return _dump(rule.model_dump())

    @app.delete("/alert/thresholds/{rule_id}", status_code=204)
    async def delete_threshold(rule_id: str):
        await engine.thresholds.delete(rule_id)
        return Response(status_code=204)

    @app.post("/alert/thresholds/{rule_id}/toggle")
    async def toggle_threshold(rule_id: str):
        rule = await engine.thresholds.toggle_active(rule_id)
        return _dump(rule.model_dump())

    # ---- 경보 ----

    @app.post("/alerts", status_code=201)
    async def create_alert(payload: dict = Body(...), x_user_id: str = Header(...)):
        """수동 경보 발송"""
        record = await engine.alerts.create_manual(payload, created_by=x_user_id)
        return _dump(record.model_dump())

    @app.get("/alerts")
    async def list_alerts(page: int = Query(1, ge=1),
                          limit: int = Query(10, ge=1, le=100),
                          level: Optional[str] = None,
                          domain_type: Optional[str] = Query(None, alias="type"),
                          status: Optional[str] = Query(None, pattern="^(active|expired)$")):
        result = await engine.alerts.list_alerts(page=page, limit=limit, level=level,
                                                 domain_type=domain_type, status=status)
        result["data"] = [r.model_dump() for r in result["data"]]
        return _dump(result)

    @app.get("/alerts/active")
    async def active_alerts():
        return _dump([r.model_dump() for r in await engine.alerts.list_active()])

    @app.get("/alerts/stats")
    async def alert_stats():
        return await engine.alerts.statistics()

    @app.get("/alerts/stats/trend")
    async def alert_trend():
        return await engine.alerts.trend()

    @app.post("/alerts/trigger-check")
    async def trigger_check():
        """임계값 검사 수동 실행"""
        return await engine.scheduler.trigger_now()

    @app.post("/alerts/cleanup-tokens")
    async def cleanup_tokens():
        """무효 토큰 정리 수동 실행"""
        return await engine.sweeper.trigger_now()

    @app.get("/alerts/{alert_id}")
    async def get_alert(alert_id: str):
        return _dump((await engine.alerts.get(alert_id)).model_dump())

    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "endpoints": {
                "health": "/health",
                "ready": "/ready",
                "metrics": "/metrics",
                "info": "/info",
                "thresholds": "/alert/thresholds",
                "alerts": "/alerts",
                "trigger_check": "/alerts/trigger-check",
                "cleanup_tokens": "/alerts/cleanup-tokens"
            }
        })

    return app
