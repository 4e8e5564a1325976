"""Usage domain: quota enforcement and billing-cycle reconciliation."""
