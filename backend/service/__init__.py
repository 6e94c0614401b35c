"""
PrismWatch Service Package.

Command-line entry point and process wiring.
Requires Python 3.11+.
"""

from service.main import RunConfig, StartupError, run

__all__ = ["RunConfig", "StartupError", "run"]
