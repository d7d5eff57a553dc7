"""Deployment engine: planning and applying manifest operations."""

from .installation import apply_plan, has_failures, results_to_dicts, summarize_results
from .models import (
    STATUS_DRY_RUN,
    STATUS_SKIPPED,
    Action,
    Plan,
    PlanStep,
    StepResult,
)
from .operations import (
    get_manifest,
    install_package,
    install_prereqs,
    install_with_prereqs,
    repair_package,
    uninstall_package,
    uninstall_preambles,
)
from .planning import (
    plan_package,
    plan_preambles,
    plan_prereqs,
    render_plan,
    require_package_type,
)

__all__ = [
    "STATUS_DRY_RUN",
    "STATUS_SKIPPED",
    "Action",
    "Plan",
    "PlanStep",
    "StepResult",
    "plan_preambles",
    "plan_prereqs",
    "plan_package",
    "render_plan",
    "require_package_type",
    "apply_plan",
    "summarize_results",
    "has_failures",
    "results_to_dicts",
    "get_manifest",
    "uninstall_preambles",
    "install_prereqs",
    "install_package",
    "uninstall_package",
    "repair_package",
    "install_with_prereqs",
]
