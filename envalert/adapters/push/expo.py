"""
Expo push transport for envalert.

This module delivers push notifications through the Expo Push API
in chunks of at most 100 messages per request.
"""

import asyncio
import aiohttp
from typing import Dict, List, Optional, Sequence, Tuple
from envalert.common.retry import retry_with_backoff
from envalert.core.errors import DispatchError
from envalert.core.models import DispatchResult, PushPayload
from envalert.observability.logging_setup import get_logger

log = get_logger("envalert.push.expo")

EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"
EXPO_TOKEN_PREFIXES = ("ExponentPushToken[", "ExpoPushToken[")


def is_expo_token(token: str) -> bool:
    """Expo 푸시 토큰 형식인지 확인합니다."""
    return isinstance(token, str) and token.startswith(EXPO_TOKEN_PREFIXES)


def split_tokens(tokens: Sequence[str]) -> Tuple[List[str], List[str]]:
    """
    토큰을 Expo 형식과 그 외로 나눕니다.

    Returns:
        (expo 토큰, 지원하지 않는 토큰)
    """
    expo, other = [], []
    for token in tokens:
        (expo if is_expo_token(token) else other).append(token)
    return expo, other


class ExpoPushTransport:
    """Expo Push API 전송기"""

    def __init__(self,
                 url: str = EXPO_PUSH_URL,
                 timeout: int = 30,
                 batch_size: int = 100,
                 access_token: Optional[str] = None,
                 max_retries: int = 2):
        """
        초기화합니다.

        Args:
            url: Expo Push API URL
            timeout: 요청 타임아웃 (초)
            batch_size: 요청당 최대 메시지 수
            access_token: Expo 액세스 토큰 (선택)
            max_retries: 배치별 재시도 횟수
        """
        self.url = url
        self.timeout = timeout
        self.batch_size = max(1, min(batch_size, 100))
        self.access_token = access_token
        self.max_retries = max_retries
        self.session: Optional[aiohttp.ClientSession] = None

        log.info(f"Expo 푸시 전송기 초기화됨 url:{url} batch_size:{self.batch_size}")

    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        await self.close()

    async def start(self) -> None:
        if self.session is None:
            headers = {
                "Accept": "application/json",
                "Accept-Encoding": "gzip, deflate",
                "Content-Type": "application/json",
            }
            if self.access_token:
                headers["Authorization"] = f"Bearer {self.access_token}"
            self.session = aiohttp.ClientSession(
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None

    async def _post(self, messages: List[Dict]) -> Dict:
        """
        메시지 배치를 전송합니다.

        Args:
            messages: Expo 메시지 목록

        Returns:
            응답 JSON ({"data": [ticket, ...]})
        """
        await self.start()

        async def _request():
            async with self.session.post(self.url, json=messages) as response:
                response.raise_for_status()
                return await response.json()

        return await retry_with_backoff(
            _request,
            max_retries=self.max_retries,
            retry_on=(aiohttp.ClientError, asyncio.TimeoutError),
        )

    async def send(self, tokens: Sequence[str], payload: PushPayload, dry_run: bool = False) -> DispatchResult:
        """
        여러 디바이스에 알림을 발송합니다.

        Expo 형식이 아닌 토큰은 바로 실패로 보고합니다. dry_run이면 형식 검증만 수행합니다.
        배치 전송 자체가 실패하면 그 배치의 토큰은 성공도 실패도 아닌 것으로 처리합니다.

        Args:
            tokens: 디바이스 토큰 목록
            payload: 알림 페이로드
            dry_run: 형식 검증만 수행

        Returns:
            DispatchResult

        Raises:
            DispatchError: 모든 배치 전송이 실패함
        """
        expo_tokens, unsupported = split_tokens(tokens)
        failed: List[str] = list(unsupported)

        if unsupported:
            log.warning(f"지원하지 않는 토큰 형식 count:{len(unsupported)}")

        if dry_run or not expo_tokens:
            success = len(expo_tokens) if dry_run else 0
            return DispatchResult(success_count=success, failed_tokens=failed)

        success = 0
        batches = [expo_tokens[i:i + self.batch_size] for i in range(0, len(expo_tokens), self.batch_size)]
        errored = 0

        for batch in batches:
            messages = [
                {
                    "to": token,
                    "title": payload.title,
                    "body": payload.body,
                    "data": payload.data,
                    "sound": "default",
                    "priority": "high",
                    "channelId": "default",
                }
                for token in batch
            ]
            try:
                result = await self._post(messages)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                errored += 1
                log.error(f"Expo 배치 전송 실패 size:{len(batch)} error:{str(e)}")
                continue

            tickets = result.get("data") or []
            if len(tickets) != len(batch):
                log.warning(f"Expo 티켓 수 불일치 batch:{len(batch)} tickets:{len(tickets)} "
                            f"errors:{result.get('errors')}")
            for token, ticket in zip(batch, tickets):
                if ticket.get("status") == "ok":
                    success += 1
                else:
                    failed.append(token)
                    detail = ticket.get("message") or (ticket.get("details") or {}).get("error")
                    log.warning(f"Expo 전송 실패 token:{token[:24]} reason:{detail}")

        if errored and errored == len(batches):
            raise DispatchError(f"Expo 전송 실패: 모든 배치({errored}) 오류")

        log.info(f"Expo 전송 완료 success:{success} failed:{len(failed)}")
        return DispatchResult(success_count=success, failed_tokens=failed)
