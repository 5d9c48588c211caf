"""
High-level use cases for the task tracker.

Each service module orchestrates the document store to implement the
request/task rules (ID allocation, merges, derived counters, listings).

Routers (FastAPI endpoints) should call these services instead of touching
the JSON document or the backup directory directly.
"""
