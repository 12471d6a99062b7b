"""
                Table Orders Service

Order-taking backend for table-side restaurant menus: tables submit
orders, the kitchen display lists them and updates their status, and the
menu polls back the latest status and message for its table.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
