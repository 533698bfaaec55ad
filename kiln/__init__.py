"""Kiln Ledger - Core persistence modules.

Provides:
- SQLite models and the idempotent schema initializer
- Kiln program / project entities and aggregates
- Reconstitution queries and the mutation engine
- A closed error taxonomy
"""

__version__ = "0.1.0"
