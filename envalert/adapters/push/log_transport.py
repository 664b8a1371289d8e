"""Logging-only push transport (dry run / local development)."""

from typing import List, Sequence
from envalert.core.models import DispatchResult, PushPayload
from envalert.observability.logging_setup import get_logger

log = get_logger("envalert.push.log")


class LogPushTransport:
    """발송 대신 로그만 남기는 전송기"""

    def __init__(self):
        self.sent: List[PushPayload] = []

    async def send(self, tokens: Sequence[str], payload: PushPayload, dry_run: bool = False) -> DispatchResult:
        if not dry_run:
            self.sent.append(payload)
        log.info(f"[LOG PUSH] tokens:{len(tokens)} dry_run:{dry_run} title:{payload.title}")
        return DispatchResult(success_count=len(tokens), failed_tokens=[])
