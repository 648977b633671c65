"""
Visibility Logic service package.

Two engines live here:

- conditions: per-request visibility decisions built from independently
  registered condition modules and the operator registry.
- migrations: versioned, idempotent rewrites of stored content trees.

`main.VisibilityService` wires both to a persistence backend.
"""
