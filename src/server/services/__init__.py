"""Service layer wiring the OAuth flow to the API."""
