"""
Diff reviewer: ask the model, validate, repair once, or fail.

The protocol is an explicit state machine:

    IDLE -> REQUESTING_INITIAL -> VALIDATING_INITIAL -> DONE
                                         |
                                         v
                 REQUESTING_REPAIR -> VALIDATING_REPAIR -> DONE | FAILED

At most two model calls are made per review, strictly one after the other.
A timeout or backend error on either call is fatal; only malformed output
earns the single repair call.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol

from safecommit.errors import LLMError, LLMTimeoutError, ReviewValidationError
from safecommit.llm.model import LLMClient
from safecommit.llm.prompts import build_repair_prompt, build_user_prompt
from safecommit.llm.schemas import Finding
from safecommit.llm.validation import ValidationResult, parse_model_output

logger = logging.getLogger(__name__)


class ReviewState(str, Enum):
    """States of one review."""
    IDLE = "idle"
    REQUESTING_INITIAL = "requesting_initial"
    VALIDATING_INITIAL = "validating_initial"
    REQUESTING_REPAIR = "requesting_repair"
    VALIDATING_REPAIR = "validating_repair"
    DONE = "done"
    FAILED = "failed"


TRANSITIONS = {
    ReviewState.IDLE: {ReviewState.REQUESTING_INITIAL},
    ReviewState.REQUESTING_INITIAL: {ReviewState.VALIDATING_INITIAL, ReviewState.FAILED},
    ReviewState.VALIDATING_INITIAL: {ReviewState.DONE, ReviewState.REQUESTING_REPAIR},
    ReviewState.REQUESTING_REPAIR: {ReviewState.VALIDATING_REPAIR, ReviewState.FAILED},
    ReviewState.VALIDATING_REPAIR: {ReviewState.DONE, ReviewState.FAILED},
    ReviewState.DONE: set(),
    ReviewState.FAILED: set(),
}


class AttemptKind(str, Enum):
    INITIAL = "initial"
    REPAIR = "repair"


@dataclass
class ReviewAttempt:
    """One model round trip and the validation verdict on its output."""
    kind: AttemptKind
    raw_text: str
    error: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.error is None


@dataclass
class ReviewOutcome:
    """Validated findings plus a record of how they were obtained."""
    findings: List[Finding]
    attempts: List[ReviewAttempt] = field(default_factory=list)
    trace: List[ReviewState] = field(default_factory=list)

    @property
    def repaired(self) -> bool:
        return len(self.attempts) > 1


class ReviewProvider(Protocol):
    """Capability shared by every review backend."""

    async def review_diff(self, diff: str, files: List[str]) -> ReviewOutcome:
        ...


class ReviewRun:
    """Mutable state of a single review; never shared between requests."""

    def __init__(self):
        self.state = ReviewState.IDLE
        self.trace: List[ReviewState] = [ReviewState.IDLE]
        self.attempts: List[ReviewAttempt] = []

    def advance(self, new_state: ReviewState) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal review transition {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.trace.append(new_state)

    def outcome(self, findings: List[Finding]) -> ReviewOutcome:
        return ReviewOutcome(findings=findings, attempts=list(self.attempts), trace=list(self.trace))


class DiffReviewer:
    """
    Review client holding only immutable configuration.

    Built once per process and shared by all request handlers.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        timeout_ms: int,
        repair_timeout_ms: Optional[int] = None,
        debug_prompts: bool = False,
    ):
        """
        Args:
            llm_client: Backend that turns a prompt into raw text
            timeout_ms: Wall-clock budget for the initial call
            repair_timeout_ms: Budget for the repair call (defaults to ``timeout_ms``)
            debug_prompts: Log every prompt sent to the model
        """
        self.llm_client = llm_client
        self.timeout_ms = timeout_ms
        self.repair_timeout_ms = repair_timeout_ms if repair_timeout_ms is not None else timeout_ms
        self.debug_prompts = debug_prompts

    async def review_diff(self, diff: str, files: List[str]) -> ReviewOutcome:
        """
        Review a (truncated) diff.

        Returns:
            ReviewOutcome with validated findings. The model's own summary
            is discarded.

        Raises:
            LLMTimeoutError: If either model call times out
            LLMError: If either model call fails
            ReviewValidationError: If the repaired output is still invalid
        """
        run = ReviewRun()

        user_prompt = build_user_prompt(diff, files)
        if self.debug_prompts:
            logger.info(f"DEBUG system prompt:\n{self.llm_client.system_prompt}")
            logger.info(f"DEBUG user prompt:\n{user_prompt}")

        run.advance(ReviewState.REQUESTING_INITIAL)
        first_text = await self._call(run, user_prompt, self.timeout_ms, "Model request timed out")

        run.advance(ReviewState.VALIDATING_INITIAL)
        first = self._check(run, AttemptKind.INITIAL, first_text)
        if first.ok:
            run.advance(ReviewState.DONE)
            return run.outcome(first.value.findings)

        logger.warning(f"Model output invalid, requesting repair: {first.error}")
        repair_prompt = build_repair_prompt(first_text)
        if self.debug_prompts:
            logger.info(f"DEBUG repair prompt:\n{repair_prompt}")

        run.advance(ReviewState.REQUESTING_REPAIR)
        repair_text = await self._call(
            run, repair_prompt, self.repair_timeout_ms, "Model repair request timed out"
        )

        run.advance(ReviewState.VALIDATING_REPAIR)
        repaired = self._check(run, AttemptKind.REPAIR, repair_text)
        if repaired.ok:
            run.advance(ReviewState.DONE)
            logger.info("Model output repaired on second attempt")
            return run.outcome(repaired.value.findings)

        run.advance(ReviewState.FAILED)
        logger.error(f"Model output invalid after repair: {repaired.error}")
        raise ReviewValidationError(
            "Model returned invalid JSON after repair attempt",
            detail=repaired.error,
        )

    async def _call(self, run: ReviewRun, prompt: str, timeout_ms: int, timeout_message: str) -> str:
        try:
            return await asyncio.wait_for(self.llm_client.generate(prompt), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError:
            run.advance(ReviewState.FAILED)
            logger.error(f"{timeout_message} after {timeout_ms}ms")
            raise LLMTimeoutError(timeout_message, timeout_ms=timeout_ms)
        except LLMError:
            run.advance(ReviewState.FAILED)
            raise
        except Exception as e:
            run.advance(ReviewState.FAILED)
            raise LLMError(f"Model request failed: {e}") from e

    def _check(self, run: ReviewRun, kind: AttemptKind, text: str) -> ValidationResult:
        result = parse_model_output(text)
        run.attempts.append(ReviewAttempt(kind=kind, raw_text=text, error=result.error))
        return result
