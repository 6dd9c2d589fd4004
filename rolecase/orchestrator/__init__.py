"""Job lifecycle orchestration.

Public API:
- JobOrchestrator: Runs the parse state machine for a job
- CancellationToken: Cooperative stop flag for one job
- LivenessRegistry: Keepalive signals held during remote work
- RollingEstimator: Running average of parse durations
- build_parsed_result, pick: Field merge between remote and local data
"""

from rolecase.orchestrator.estimator import RollingEstimator, estimate_progress, update_stats
from rolecase.orchestrator.liveness import LivenessRegistry
from rolecase.orchestrator.merge import build_parsed_result, pick
from rolecase.orchestrator.service import CancellationToken, JobOrchestrator

__all__ = [
    "JobOrchestrator",
    "CancellationToken",
    "LivenessRegistry",
    "RollingEstimator",
    "estimate_progress",
    "update_stats",
    "build_parsed_result",
    "pick",
]
