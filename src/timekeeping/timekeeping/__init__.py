"""Timekeeping package.

Organized by feature modules (timerecording, users) on top of an
in-process memory database with optional disk persistence.
"""
