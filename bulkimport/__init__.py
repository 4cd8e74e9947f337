"""Bulk-import reconciliation engine.

Turns parsed spreadsheet rows (team-member invitations, customers, catalog services,
inventory materials) into validated, deduplicated, persisted records and reports a
per-row outcome for every input row.
"""

__version__ = "0.3.0"
