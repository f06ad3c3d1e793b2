"""Use-case level logic.

These modules derive the publication action center (what a publication owes
its advertisers right now) from order snapshots returned by integrations.

They should be:
- deterministic
- unit-testable
- free of web/framework code
"""
