"""
Utilities Package.

Console/logging helpers and small LibCST node utilities.
"""
