"""
Pocket Ledger - Source Package

A personal finance tracker whose accounts carry a cached balance that is
kept in step with the ledger entries recorded against them.

DESIGN PRINCIPLES:
1. Every entry mutation is paired with exactly one balance adjustment
2. Fail early, fail visibly
3. A half-applied mutation is never reported as a plain failure
4. Every operation is relayed as a status event
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Pocket Ledger Team"
