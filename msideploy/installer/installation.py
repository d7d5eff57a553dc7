"""Plan execution."""

import logging
from collections import Counter
from typing import Callable

from msideploy.execution import ProcessResult, run_process

from .models import STATUS_DRY_RUN, STATUS_SKIPPED, Plan, StepResult

_logging = logging.getLogger(__name__)

Runner = Callable[..., ProcessResult]


def apply_plan(
    plan: Plan,
    runner: Runner = run_process,
    dry_run: bool = False,
    timeout: int | None = None,
) -> list[StepResult]:
    """Run every step of ``plan`` in order.

    A step that fails to launch or exits unsuccessfully is recorded and the
    remaining steps still run.
    """
    results = []

    for step in plan.steps:
        if step.is_noop:
            results.append(
                StepResult(step.action, step.target, STATUS_SKIPPED, step.description)
            )
            continue

        if dry_run:
            _logging.info(f"[DRY-RUN] Would execute: {step.argv}")
            results.append(
                StepResult(
                    step.action,
                    step.target,
                    STATUS_DRY_RUN,
                    step.description,
                    argv=step.argv,
                )
            )
            continue

        _logging.info(f"{step.action.value}: {step.description}")
        outcome = runner(step.argv, cwd=step.cwd, timeout=timeout)
        message = outcome.error or step.description
        results.append(
            StepResult(
                step.action,
                step.target,
                outcome.status.value,
                message,
                returncode=outcome.returncode,
                argv=step.argv,
            )
        )

    return results


def summarize_results(results: list[StepResult]) -> dict[str, int]:
    """Count results per status."""
    return dict(Counter(r.status for r in results))


def has_failures(results: list[StepResult]) -> bool:
    return any(r.failed for r in results)


def results_to_dicts(results: list[StepResult]) -> list[dict]:
    return [r.to_dict() for r in results]


__all__ = [
    "Runner",
    "apply_plan",
    "summarize_results",
    "has_failures",
    "results_to_dicts",
]
