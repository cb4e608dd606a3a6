"""
Test helper utilities for SmartInhale testing.

This module provides reusable utilities for:
- Generating synthetic events
- Building JSON and binary device payloads
"""
