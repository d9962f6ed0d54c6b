"""Radiant collaborator adapters (selected by dotted path in RADIANT settings)."""
