# envalert/main.py
import os, asyncio, signal
from typing import List
import uvicorn
from envalert.bootstrap import Engine, build_engine
from envalert.settings import Settings
from envalert.observability.health import create_app
from envalert.observability.logging_setup import setup_logging_dev, setup_logging_json, get_logger

def _b(name, default=False): return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def build_settings() -> Settings:
    s = Settings()
    # 플래그
    s.dry_run = _b("DRY_RUN", s.dry_run)

    # 경보 엔진
    s.engine.enabled = _b("ENGINE_ENABLED", s.engine.enabled)
    s.engine.tick_interval_sec = int(os.getenv("TICK_INTERVAL_SEC", s.engine.tick_interval_sec))
    s.engine.tick_timeout_sec = int(os.getenv("TICK_TIMEOUT_SEC", s.engine.tick_timeout_sec))
    s.engine.call_timeout_sec = float(os.getenv("CALL_TIMEOUT_SEC", s.engine.call_timeout_sec))
    s.engine.dedup_window_hours = float(os.getenv("DEDUP_WINDOW_HOURS", s.engine.dedup_window_hours))
    s.engine.auto_alert_ttl_hours = float(os.getenv("AUTO_ALERT_TTL_HOURS", s.engine.auto_alert_ttl_hours))
    s.engine.area_radius_km = float(os.getenv("AREA_RADIUS_KM", s.engine.area_radius_km))
    s.engine.audience_buffer_km = float(os.getenv("AUDIENCE_BUFFER_KM", s.engine.audience_buffer_km))
    s.engine.max_concurrency = int(os.getenv("MAX_CONCURRENCY", s.engine.max_concurrency))
    s.engine.locale = os.getenv("ALERT_LOCALE", s.engine.locale)

    # 토큰 정리
    s.token_sweep.enabled = _b("TOKEN_SWEEP_ENABLED", s.token_sweep.enabled)
    s.token_sweep.interval_sec = int(os.getenv("TOKEN_SWEEP_INTERVAL_SEC", s.token_sweep.interval_sec))
    s.token_sweep.batch_size = int(os.getenv("TOKEN_SWEEP_BATCH_SIZE", s.token_sweep.batch_size))

    # 상위 텔레메트리 API
    s.upstream.base_url = os.getenv("UPSTREAM_BASE_URL", s.upstream.base_url)
    s.upstream.timeout_sec = int(os.getenv("UPSTREAM_TIMEOUT_SEC", s.upstream.timeout_sec))
    s.upstream.max_retries = int(os.getenv("UPSTREAM_MAX_RETRIES", s.upstream.max_retries))

    # 푸시
    s.push.provider = os.getenv("PUSH_PROVIDER", s.push.provider)
    s.push.url = os.getenv("PUSH_URL", s.push.url)
    s.push.timeout_sec = int(os.getenv("PUSH_TIMEOUT_SEC", s.push.timeout_sec))
    s.push.batch_size = int(os.getenv("PUSH_BATCH_SIZE", s.push.batch_size))
    s.push.access_token = os.getenv("EXPO_ACCESS_TOKEN", s.push.access_token)

    # 저장소
    s.storage.db_path = os.getenv("DB_PATH", s.storage.db_path)
    s.storage.seed_defaults = _b("SEED_DEFAULT_RULES", s.storage.seed_defaults)

    # 관측성
    s.observability.metrics_enabled = _b("METRICS_ENABLED", s.observability.metrics_enabled)
    s.observability.http_port = int(os.getenv("HTTP_PORT", s.observability.http_port))
    s.observability.log_level = os.getenv("LOG_LEVEL", s.observability.log_level)
    s.observability.log_format = os.getenv("LOG_FORMAT", s.observability.log_format)

    return s

async def start_http(settings: Settings, engine: Engine) -> asyncio.Task:
    app = create_app(settings, engine)
    return asyncio.create_task(uvicorn.Server(
        uvicorn.Config(app, host="0.0.0.0", port=settings.observability.http_port, log_level="info")
    ).serve())

async def main():
    s = build_settings()
    if s.observability.log_format == "json":
        setup_logging_json(s.observability.log_level, s.observability.service_name)
    else:
        setup_logging_dev(s.observability.log_level)
    log = get_logger("envalert.main")
    log.info("설정 로드 완료")

    engine = build_engine(s)
    await engine.init()
    log.info("엔진 초기화 완료")

    http_task = await start_http(s, engine)
    log.info("HTTP 서버 시작됨")

    stop = asyncio.Future()
    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try: loop.add_signal_handler(sig, lambda: (not stop.done()) and stop.set_result(True))
            except NotImplementedError: pass
    except RuntimeError: pass

    tasks: List[asyncio.Task] = [http_task]
    if s.engine.enabled:
        log.info("경보 스케줄러 시작")
        tasks.append(asyncio.create_task(engine.scheduler.start()))
    if s.token_sweep.enabled:
        log.info("토큰 정리 스케줄러 시작")
        tasks.append(asyncio.create_task(engine.sweeper.start()))

    await stop
    engine.scheduler.stop()
    engine.sweeper.stop()
    for t in tasks: t.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    await engine.close()
    log.info("종료 완료")

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
