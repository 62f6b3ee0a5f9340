"""Todo Tracker.

A small multi-user task tracker with role-based access control. One JSON
file on disk is shared by an MCP tool server (stdio) and a REST+HTML
dashboard, both calling through a single store.
"""

__version__ = "1.0.0"
