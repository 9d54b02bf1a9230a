"""Core business logic.

Modules:
- grader: quiz answer grading
- class_codes: class join-code generation
- stats: study progress aggregation
"""

__all__ = [
    "grader",
    "class_codes",
    "stats",
]
