"""
Core Business Logic
==================

Core modules for storefront template customization.

Modules:
- templates: template catalog and markup files
- identity: stable element identifiers shared by both engines
- content: content document parsing, presets and save/load
- editor: live mutation engine and editor session state machine
- rendering: static renderer, product injector and render model
- storage: record store repositories
"""
