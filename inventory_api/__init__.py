"""
FastAPI RESTful API for the in-memory Book Inventory.

This package provides:
- A lock-guarded in-memory store of book records
- CRUD endpoints for books
- Checkout and return actions that adjust stock quantity
"""
