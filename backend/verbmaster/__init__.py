"""CCEA GCSE Spanish verb drilling: Gemini-backed API, client and drill controller."""

__version__ = "0.1.0"
