# ledger/api/views/__init__.py
