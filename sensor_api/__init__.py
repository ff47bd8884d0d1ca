"""
Sensor API: rolled-up aggregations of sensor telemetry over HTTP.

CHANGELOG:
- 2026-10-12: Initial creation

TODO:
- None
"""

__version__ = "0.1.0"
