"""Registry: the state-transition core of the content ledger.

The registry provides:
- Validation: fixed-order field checks with precise error kinds
- Governance: a one-shot authority gating fee and capacity settings
- Storage: content records plus the hash uniqueness index
- Audit: the latest edit per content record
"""
