"""
Monetyz - Personal Finance Tracker Core

Records income, expense and transfer transactions across a small set of
named accounts and reduces them into monthly figures.

DESIGN PRINCIPLES:
1. Invalid input is rejected before anything is persisted
2. Transfers never create or destroy money
3. Exactly one store owns the transaction list at a time
4. Remote outages degrade to local persistence, never block the user
"""

__version__ = "1.0.0"
__author__ = "Monetyz Team"
