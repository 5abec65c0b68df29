"""
Core Business Logic Package.

Contains business logic that operates on pure data models.
Separated from models to maintain clean architecture.

Exports:
    State transitions: can_run_transition, can_job_transition, is_run_terminal, is_job_terminal
"""

from .transitions import (
    can_run_transition,
    can_job_transition,
    get_run_terminal_states,
    get_run_active_states,
    is_run_terminal,
    is_job_terminal
)

__all__ = [
    'can_run_transition',
    'can_job_transition',
    'get_run_terminal_states',
    'get_run_active_states',
    'is_run_terminal',
    'is_job_terminal',
]
