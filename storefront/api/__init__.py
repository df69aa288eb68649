"""
API Module
==========

FastAPI application serving published store pages and the editor's content
endpoints.
"""
