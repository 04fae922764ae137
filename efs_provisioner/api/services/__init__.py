"""API service layer."""
