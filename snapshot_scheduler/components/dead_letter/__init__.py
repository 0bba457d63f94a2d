"""Dead-letter component - records and unschedules permanently failed jobs."""

from .component import build_failure_record, run_dead_letter_batch
from .models import DeadLetterInput, DeadLetterOutput
from .ports import FailureLogPort, ScheduleRemoverPort, TimePort

__all__ = [
    # Entry points
    "run_dead_letter_batch",
    "build_failure_record",
    # Models
    "DeadLetterInput",
    "DeadLetterOutput",
    # Ports
    "FailureLogPort",
    "ScheduleRemoverPort",
    "TimePort",
]
