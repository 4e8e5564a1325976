"""Usage quota and billing-cycle reconciliation engine."""
