"""
Data Models
===========

Pydantic data models for the content document, store records and API payloads.

Models:
- schemas: content document, template, product, store and API schemas
"""
