"""
API Routes
==========

Routers included by ``storefront.api.main``.
"""
