"""
Core Orchestration Components.

Contains the fundamental building blocks shared by every service:
pure data models, state transition rules and error codes.

Structure:
    models/: Pure data structures (no business logic)
    logic/: Business logic separated from models
    errors.py: Error codes and retry classification
"""

# Make subpackages available first (no circular dependencies)
from . import models
from . import logic

__all__ = [
    'models',
    'logic',
]
