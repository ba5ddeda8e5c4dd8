"""Security: audit trail of registry mutations."""
