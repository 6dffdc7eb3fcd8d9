"""
vaultX - Source Package

A personal-finance front end that signs users up, links their bank
accounts and moves money between them.

DESIGN PRINCIPLES:
1. Providers own the money - we never hold financial state
2. Validate before the first remote call
3. Fail early, fail visibly
4. No hidden retries
5. Every step must be auditable
"""

__version__ = "1.0.0"
__author__ = "vaultX Team"
