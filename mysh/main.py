#!/usr/bin/env python3
"""
mysh - command line entry point

Start-up sequence:
1. Load configuration
2. Initialize logging
3. Run the interactive shell
4. Shutdown

Author: mysh developers
Version: 1.0.0
"""

import argparse
import os
import sys
from typing import List, Optional

from mysh.core.config_loader import ConfigLoader
from mysh.exceptions import ConfigError
from mysh.logger import Logger, LogLevel
from mysh.shell.shell import Shell

DEFAULT_CONFIG = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.json')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='mysh', description='A small interactive shell.')
    parser.add_argument(
        '--config',
        metavar='PATH',
        default=None,
        help='JSON configuration file (default: the bundled config.json)'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for mysh.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    config_path = args.config or DEFAULT_CONFIG
    try:
        config = ConfigLoader().load(config_path)
    except ConfigError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return 2

    try:
        level = LogLevel.from_name(config.logging.level)
    except ValueError:
        print(f"ERROR: Unknown log level: {config.logging.level}", file=sys.stderr)
        return 2

    Logger.initialize(
        level=level,
        log_file=config.logging.log_file,
        use_colors=config.logging.use_colors,
        console=config.logging.console_output
    )

    shell = Shell(config=config)
    try:
        shell.run()
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
    finally:
        Logger.shutdown()

    return 0


if __name__ == '__main__':
    sys.exit(main())
