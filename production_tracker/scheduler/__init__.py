"""
Production Batch Scheduler

Client-side progress / completion tracking for running production jobs.

Responsibilities:
- Compute units produced per job from the wall clock
- Detect newly completed units exactly once
- Select the job whose next unit completes soonest
- Drive periodic ticks and dispatch side effects through collaborators

NO:
- Hardware polling
- Server clock sync
- Persistence beyond collaborator calls
"""

from .models import JobStatus, ProductionJob, ProgressSnapshot, NextCompletion, parse_jobs
from .progress import compute_progress, units_done_at
from .completions import CompletionDetector, detect_new_completions
from .next_completion import select_next_completion, format_countdown
from .events import CompletionEvent, CompletionHistory
from .driver import TickDriver

__all__ = [
    'JobStatus',
    'ProductionJob',
    'ProgressSnapshot',
    'NextCompletion',
    'parse_jobs',
    'compute_progress',
    'units_done_at',
    'CompletionDetector',
    'detect_new_completions',
    'select_next_completion',
    'format_countdown',
    'CompletionEvent',
    'CompletionHistory',
    'TickDriver'
]
