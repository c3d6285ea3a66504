"""
mysh Process Module

Runs commands as real processes:
- Background job table
- Single-command dispatch
- Pipelines wired with OS pipes
"""

from .jobs import BackgroundJob, JobTable
from .dispatcher import CommandDispatcher, wait_for
from .executor import PipelineExecutor, split_pipeline

__all__ = [
    'BackgroundJob',
    'JobTable',
    'CommandDispatcher',
    'wait_for',
    'PipelineExecutor',
    'split_pipeline',
]
