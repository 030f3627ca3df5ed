"""Sales lists, purchaser assignment and versioned snapshots."""
