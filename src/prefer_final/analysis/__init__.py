"""
Static Analysis Package.

Visitors and helpers that decide which class members can be marked `Final`.

Modules:
    - ``symbol_table``: Lexical scopes and class type resolution.
    - ``declarations``: Field and constructor-declared member extraction.
    - ``eligibility``: Candidate filtering.
    - ``classifier``: Write-shape classification of member accesses.
    - ``class_scope``: Per-class mutation bookkeeping and its stack.
    - ``mutation_tracker``: The traversal driving the class scopes.
"""
