"""
hotsnet Test Suite
==================

    python -m pytest tests/                 # Run all tests
    python -m pytest tests/unit             # Unit tests only

Fakes for the external collaborators (time-surface kernel, clusterer,
initializer) live in tests/fakes.py.
"""
