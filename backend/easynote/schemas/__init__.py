# Schemas package init
"""
Easy Note Backend: API Schemas
==============================

What:  Pydantic request/response models (the client-facing contracts).
"""
