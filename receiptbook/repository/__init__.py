"""SQL for the receipt book tables, one module per table group.

Functions take an open connection first and return sqlite3.Row objects;
the service layer owns transactions and the mapping to models.
"""
from __future__ import annotations
