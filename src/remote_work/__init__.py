"""
Remote work management.

Employees, projects and tasks live in a document store; the in-memory
indexes (task queue, name prefix index, assignments, history) are derived
from it and reconciled after every write.
"""

__version__ = "0.1.0"
