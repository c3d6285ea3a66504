"""
Process Exceptions

Exceptions related to forking, pipelines and background job tracking.

Author: mysh developers
Version: 1.0.0
"""

from typing import Optional, Any

from .shell_exceptions import MyshError


class ProcessException(MyshError):
    """
    Base exception for all process-related errors.

    Attributes:
        message: Human-readable error description
        pid: Process ID associated with the error (if applicable)
        error_code: Numeric error code for programmatic handling
    """

    def __init__(
        self,
        message: str,
        pid: Optional[int] = None,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if pid is not None:
            ctx["pid"] = pid
        super().__init__(message, error_code=error_code or 2000, context=ctx)
        self.pid = pid


class ForkError(ProcessException):
    """
    The operating system refused to create a child process.

    Example:
        >>> raise ForkError("Failed to fork process", stage=1)
    """

    def __init__(
        self,
        message: str,
        stage: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if stage is not None:
            ctx["stage"] = stage
        super().__init__(message, error_code=2001, context=ctx)
        self.stage = stage


class PipelineError(ProcessException):
    """
    A pipeline could not be wired.

    Raised when pipe creation fails; no stage has been started when this
    is raised.
    """

    def __init__(
        self,
        message: str,
        stages: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if stages is not None:
            ctx["stages"] = stages
        super().__init__(message, error_code=2002, context=ctx)
        self.stages = stages


class JobTableFullError(ProcessException):
    """
    The background job table is at capacity.

    The process that triggered this keeps running; it is simply not
    tracked.
    """

    def __init__(self, pid: int, capacity: int) -> None:
        super().__init__(
            "Too many background processes",
            pid=pid,
            error_code=2003,
            context={"capacity": capacity}
        )
        self.capacity = capacity
