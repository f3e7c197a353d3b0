"""Timeclock package.

Attendance time accounting (clock in/out, breaks, worked durations) and the
leave / time-correction approval workflow, organized by feature modules with
a thin Flask controller layer over service/repository layers.
"""

__version__ = "1.0.0"
