"""Accounts domain: persisted quota state of each billable account.

Use Inject(AccountRepositoryProtocol) in FastAPI endpoints for the singleton repository.
"""
