"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Application, storage and rendering settings
- database: Redis connection management for the record store
- logging: Structured logging configuration
"""
