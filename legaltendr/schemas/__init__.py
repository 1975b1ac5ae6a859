"""
LegalTendr Backend — API Schemas
==================================

Pydantic request/response models. They are kept apart from the ORM models so
the API never exposes internal columns (password_hash, token hashes).
"""
