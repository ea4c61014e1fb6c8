"""
Backend package for the CatChat client core.

This package provides the document store and identity adapters, the screens
that mirror remote documents into local state, and a FastAPI shell exposing
them to a front-end.
"""
