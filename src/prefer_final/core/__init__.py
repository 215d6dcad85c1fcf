"""
Core Package.

Contains the lint pipeline:
- Lint Engine
- Diagnostic Reporter
- Final Annotation Fixer
"""
