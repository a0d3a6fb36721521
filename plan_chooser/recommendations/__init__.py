"""
Plan recommendation engine.

Responsibilities:
- Accept a user's quiz answers as sparse preferences.
- Drop plans that explicitly exclude a hard requirement.
- Score each surviving plan against a versioned weight table.
- Rank with score bands and data-quality tie-breaks, then explain the top picks.
"""
