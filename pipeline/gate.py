"""Release gate: required status + "Passed QA" checkbox, with one delayed re-check."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt, wait_fixed

from config import GateSettings
from models import GateDecision, WorkItem

from .normalize import StatusNormalizer


logger = logging.getLogger(__name__)


class GateEvaluator:
    """Decides whether hand-off may proceed.

    Status automation on the tracker can lag behind the checkbox: the task is
    still in an interim QA status while "Passed QA" is already ticked. In that
    single situation the evaluator waits ``recheck_delay_sec`` and reads the
    task once more. The re-check never runs twice.
    """

    def __init__(
        self,
        settings: Optional[GateSettings] = None,
        *,
        normalizer: Optional[StatusNormalizer] = None,
        sleep: Callable[[float], None] = time.sleep,
        verbose: bool = True,
    ) -> None:
        self.settings = settings or GateSettings()
        self.normalizer = normalizer or StatusNormalizer()
        self._sleep = sleep
        self._log_level = logging.INFO if verbose else logging.DEBUG
        self._pending = {self.normalizer.normalize(label) for label in self.settings.pending_statuses}

    def evaluate(self, status_observed: str, checkbox_checked: bool) -> GateDecision:
        required = self.settings.required_status
        status_ok = self.normalizer.matches(status_observed, required)
        return GateDecision(
            passed=bool(status_ok and checkbox_checked),
            status_observed=str(status_observed or ""),
            required_status=required,
            checkbox_observed=bool(checkbox_checked),
        )

    def evaluate_item(self, item: WorkItem) -> GateDecision:
        checkbox = item.find_field(self.settings.checkbox_field)
        checked = checkbox.value.is_checked() if checkbox else False
        logger.log(
            self._log_level,
            "Gate check: required=%r observed=%r passed_field=%s checked=%s",
            self.settings.required_status,
            item.status_label,
            {"id": checkbox.id, "name": checkbox.name, "type": checkbox.type, "raw": checkbox.value.raw}
            if checkbox
            else None,
            checked,
        )
        return self.evaluate(item.status_label, checked)

    def needs_recheck(self, decision: GateDecision) -> bool:
        """Status fails, checkbox is ticked, and the status is a known interim label."""
        if decision.passed or not decision.checkbox_observed:
            return False
        return self.normalizer.normalize(decision.status_observed) in self._pending

    def check(self, item: WorkItem, refetch: Callable[[], WorkItem]) -> GateDecision:
        """Evaluate ``item``; on the lagging-status case, re-read it once via ``refetch``."""
        attempts = {"count": 0}

        def _attempt() -> GateDecision:
            attempts["count"] += 1
            current = item if attempts["count"] == 1 else refetch()
            decision = self.evaluate_item(current)
            if attempts["count"] > 1:
                decision = decision.model_copy(update={"rechecked": True})
                logger.log(
                    self._log_level,
                    "Re-check after wait: observed=%r passed=%s",
                    decision.status_observed,
                    decision.passed,
                )
            return decision

        retrying = Retrying(
            stop=stop_after_attempt(2),
            wait=wait_fixed(self.settings.recheck_delay_sec),
            retry=retry_if_result(self.needs_recheck),
            retry_error_callback=_last_result,
            before_sleep=self._announce_recheck,
            sleep=self._sleep,
        )
        return retrying(_attempt)

    def failure_message(self, decision: GateDecision) -> str:
        return self.settings.failure_template.format(
            required_status=decision.required_status,
            observed_status=decision.status_observed or "Unknown",
        )

    def _announce_recheck(self, retry_state: RetryCallState) -> None:
        logger.info(
            "Status still interim but Passed QA is checked; waiting %.1fs for automation to land",
            self.settings.recheck_delay_sec,
        )


def _last_result(retry_state: RetryCallState) -> GateDecision:
    return retry_state.outcome.result()
