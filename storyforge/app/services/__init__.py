"""Services package for StoryForge.

This package provides:
- Prompt builders for every generation route
- Novel outline generation with structure validation
"""
