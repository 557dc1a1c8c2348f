"""Shop order email components.

This package contains:
- Email parsing into order records (parsing)
- Gmail API client and per-owner credentials
- Order sync and reconciliation
- Carrier reference data
"""
