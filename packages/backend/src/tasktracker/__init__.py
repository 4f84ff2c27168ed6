"""tasktracker — task-tracking backend.

Users register, log in for a short-lived bearer token, and manage
tasks they own. Every task operation is scoped to its owner.
"""

__version__ = "0.1.0"
