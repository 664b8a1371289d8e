"""
테스트 설정 및 픽스처

이 모듈은 pytest 설정과 공통 픽스처를 제공합니다.
"""

import pytest
import asyncio
import tempfile
import os
from unittest.mock import AsyncMock
from envalert.core.models import DispatchResult
from envalert.settings import Settings
from tests.helpers import FakeClock


@pytest.fixture
def temp_db_path():
    """임시 데이터베이스 파일 경로"""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        temp_path = f.name
    yield temp_path
    # 테스트 후 파일 정리
    if os.path.exists(temp_path):
        os.unlink(temp_path)


@pytest.fixture
def clock():
    """2026-03-01 00:00 UTC에서 시작하는 시계"""
    return FakeClock()


@pytest.fixture
def sample_settings(temp_db_path):
    """테스트용 설정"""
    settings = Settings()
    settings.observability.service_name = "test-service"
    settings.observability.build_version = "1.0.0"
    settings.observability.log_level = "INFO"
    settings.observability.http_port = 8080
    settings.storage.db_path = temp_db_path
    settings.storage.seed_defaults = False
    return settings


@pytest.fixture
def mock_transport():
    """모든 토큰을 성공으로 처리하는 전송기 목업"""
    transport = AsyncMock()

    async def _send(tokens, payload, dry_run=False):
        return DispatchResult(success_count=len(tokens), failed_tokens=[])

    transport.send.side_effect = _send
    return transport


@pytest.fixture
def mock_sampler():
    """측정값 샘플러 목업"""
    sampler = AsyncMock()
    sampler.fetch_current.return_value = []
    return sampler


# pytest 설정
def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line(
        "markers", "slow: 느린 테스트 마커"
    )
    config.addinivalue_line(
        "markers", "integration: 통합 테스트 마커"
    )


def pytest_collection_modifyitems(config, items):
    """테스트 아이템 수정"""
    for item in items:
        # 비동기 테스트에 asyncio 마커 추가
        if asyncio.iscoroutinefunction(getattr(item, "function", None)):
            item.add_marker(pytest.mark.asyncio)

        # 통합 테스트 마커 추가
        if "integration" in item.name:
            item.add_marker(pytest.mark.integration)
