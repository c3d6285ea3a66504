"""
mysh Core Module

Configuration, subsystem lifecycle, console helpers and signal handling.
ShellContext lives in mysh.core.context and is imported from there.
"""

from .config_loader import (
    Config,
    ConfigLoader,
    ShellConfig,
    JobsConfig,
    ServerConfig,
    ClientConfig,
    LoggingConfig,
    get_config,
)
from .subsystem import Subsystem, SubsystemState
from .console import report_error, flush_streams, bind_standard_streams, exit_child
from .signals import Interrupt, InterruptRelay, reset_child_signals

__all__ = [
    # Config
    'Config',
    'ConfigLoader',
    'ShellConfig',
    'JobsConfig',
    'ServerConfig',
    'ClientConfig',
    'LoggingConfig',
    'get_config',
    # Subsystem
    'Subsystem',
    'SubsystemState',
    # Console
    'report_error',
    'flush_streams',
    'bind_standard_streams',
    'exit_child',
    # Signals
    'Interrupt',
    'InterruptRelay',
    'reset_child_signals',
]
