"""Volunteer Hours package.

Event participation lifecycle engine organized by feature modules
(events, users, lifecycle, accrual, reports, ...) with Protocol-based
repositories and plain service classes on top.
"""
