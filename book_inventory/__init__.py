"""Book Inventory - Core Application Package

This package contains the core modules of the inventory service:
- Data model (book.py)
- Database handle (database.py)
- Inventory state transitions (inventory.py)
- CLI output helpers (ui_helpers.py)
"""
