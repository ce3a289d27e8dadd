"""MasterContractor - Quote Reconciliation Engine.

Reconciles vendor quotes for construction projects into one trustworthy
cost picture.

Architecture:
- Dedupe engine: links quote lines to the quotes they represent, only with text evidence
- Safety engine: Wrapper Truth Rule and tax-trap audit
- Gap and conflict engines: missing scope, brand and spec mismatches
- Summary engine: verified / pending / estimated cost with confidence
"""

__version__ = "1.0.0"
