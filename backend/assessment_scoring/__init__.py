"""
Scoring core of the assessment platform.

Grades standard test attempts with partial credit, scores psychometric
instruments, and aggregates battery completion progress.
"""

__version__ = "0.1.0"
