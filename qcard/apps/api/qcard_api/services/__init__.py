"""Domain services.

Each module exposes plain functions taking a SQLAlchemy ``Session`` first.
They commit their own unit of work and raise ``qcard_api.errors`` exceptions
that main.py renders as Problem Details.
"""
