from __future__ import annotations
import logging
import sys
from loguru import logger

# 표준 logging을 쓰는 라이브러리 (uvicorn, aiohttp, aiosqlite)
STDLIB_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "aiohttp", "aiosqlite", "asyncio")

# ---- stdlib logging → loguru 인터셉트 ----
class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).bind(name=record.name).log(level, record.getMessage())

def _hook_stdlib_logging(level: str) -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in STDLIB_LOGGERS:
        l = logging.getLogger(name)
        l.handlers = [InterceptHandler()]
        l.propagate = False
    # aiosqlite는 쿼리마다 DEBUG를 남기므로 한 단계 올림
    if level.upper() == "DEBUG":
        logging.getLogger("aiosqlite").setLevel(logging.INFO)

# ---- 콘솔 포맷: 바인딩된 name(컴포넌트)과 tick 컨텍스트 표시 ----
DEV_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level:<7}</level> | "
    "<cyan>{extra[name]}</cyan> | "
    "<cyan>{file}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

def setup_logging_dev(log_level: str = "INFO") -> None:
    """
    개발 콘솔용 loguru 초기화.
    - 컬러 출력 (stderr)
    - stdlib logging 흡수
    """
    logger.remove()
    logger.configure(extra={"name": "envalert"})
    logger.add(
        sys.stderr,
        format=DEV_FORMAT,
        colorize=True,
        backtrace=False,
        diagnose=False,
        level=log_level.upper(),
    )
    _hook_stdlib_logging(log_level)

def setup_logging_json(log_level: str = "INFO", service: str = "envalert") -> None:
    """
    컨테이너 배포용 JSON 한 줄 로그.
    bind/contextualize로 붙인 값은 record.extra에 그대로 들어갑니다.
    """
    logger.remove()
    logger.configure(extra={"name": "envalert", "service": service})
    logger.add(
        sys.stdout,
        serialize=True,
        level=log_level.upper(),
        enqueue=True,     # 여러 태스크에서 동시에 써도 줄이 섞이지 않음
    )
    _hook_stdlib_logging(log_level)

def get_logger(name: str = "envalert", **ctx):
    """컴포넌트 이름(및 선택적 컨텍스트)을 바인딩한 logger 반환."""
    return logger.bind(name=name, **ctx)

def with_context(**ctx):
    """블록 안의 모든 로그에 컨텍스트를 붙입니다 (예: tick 시각)."""
    return logger.contextualize(**ctx)
