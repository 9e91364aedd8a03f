"""
Core Package - Creator Platform

Shared building blocks for all apps: seller profiles, team roles,
seller context and policies, money formatting, pagination.

Author: CP Development Team
Version: 1.0.0
"""
