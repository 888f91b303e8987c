"""
TextForge Tests Package
=======================
Test suite for the text processing engine.

Run all tests: python3 -m pytest tests/ -v
Run specific: python3 -m pytest tests/test_batch.py -v
"""
