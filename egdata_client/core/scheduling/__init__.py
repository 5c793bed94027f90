"""
Core Scheduling Module

Interval timers and loops used by the background scan and upload cycles.
"""
from .interval_loop import IntervalTimer, IntervalLoop

__all__ = ['IntervalTimer', 'IntervalLoop']
