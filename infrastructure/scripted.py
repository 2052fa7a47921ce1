"""
Scripted behaviour shared by the in-process provider test doubles.

A mock provider succeeds by default. Tests switch it to fail or to hang (sleep
past the call timeout) and inspect ``calls`` afterwards::

    provider = container.payment()
    provider.script(Outcome.HANG)
"""

import logging
import threading
from enum import Enum
from typing import Any, Dict, List, Optional, Type

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    SUCCEED = "succeed"
    FAIL = "fail"
    HANG = "hang"


class ScriptedProvider:
    """Mixin recording every call and replaying the scripted outcome."""

    default_hang_seconds = 2.0

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.outcome = Outcome.SUCCEED
        self.failure_message = "Scripted provider failure"
        self.hang_seconds = self.default_hang_seconds
        self._release = threading.Event()

    def script(self, outcome: Outcome, message: Optional[str] = None, hang_seconds: Optional[float] = None):
        self.outcome = Outcome(outcome)
        if message:
            self.failure_message = message
        if hang_seconds is not None:
            self.hang_seconds = hang_seconds
        self._release.clear()

    def release(self):
        """Wake up any call currently hanging."""
        self._release.set()

    def _perform(self, operation: str, error_class: Type[Exception], **payload):
        self.calls.append({"operation": operation, **payload})
        logger.info(f"[MOCK {self.__class__.__name__}] {operation} outcome={self.outcome.value}")
        if self.outcome == Outcome.FAIL:
            raise error_class(self.failure_message)
        if self.outcome == Outcome.HANG:
            self._release.wait(self.hang_seconds)
