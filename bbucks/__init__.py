"""
bbucks - Source Package

A social currency ledger. Every change to the ledger is a timestamped
command appended to a log, and balances are computed by replaying it.

DESIGN PRINCIPLES:
1. The log is the only source of truth
2. Validate first, mutate second, append last
3. History can be asked questions without being rewound
4. Every rejection is typed and explained
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "bbucks Team"
