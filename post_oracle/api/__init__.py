"""HTTP intake API."""
