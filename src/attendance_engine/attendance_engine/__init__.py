"""Attendance Engine package.

This package is organized by feature modules (events, attendance, excuses,
payroll, sweepers) with a thin Flask controller layer over service and
repository layers.
"""
