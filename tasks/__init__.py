"""tasks/ -- User-owned tasks and the ownership-scoped store.

Layer rule: tasks/ imports only core/, stdlib and third-party libraries.
It does NOT import from api/ or auth/.
"""
