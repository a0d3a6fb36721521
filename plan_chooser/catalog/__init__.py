"""
Plan catalog package.

Responsibilities:
- Define the canonical Plan record with tri-state benefit fields.
- Derive completeness metrics from a fixed set of key fields.
- Normalise raw insurer spreadsheets into the canonical JSON catalog.
- Load a catalog into an immutable value that callers pass around explicitly.
"""
