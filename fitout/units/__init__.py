"""Units and their client portal logins."""
