"""
In-memory indexes derived from the document store.

Components:
- prefix_index.py: employee name prefix search (arena trie)
- task_queue.py: priority/due ordered task cache
- assignments.py: employee id -> assigned task ids
- history.py: bounded event log
"""
