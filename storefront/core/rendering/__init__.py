"""
Rendering Module
===============

Static page rendering and the pieces shared with the live editor engine.

Components:
- static_renderer: ordered markup rule pipeline for public pages
- rules: the individual rewriting passes
- products: product card rendering and injection
- render_model: per-element overrides with tree and markup backends
- styles: background and hero typography style block
- regions: hero slot and product region lookups
- assets: asset URL resolution
"""
