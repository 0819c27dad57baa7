"""
Persisted records.

Components:
- models.py: Employee, Project, Task, TaskStatus and their document shapes
- document_store.py: SQLite-backed document store
"""
