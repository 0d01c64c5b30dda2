"""Authentication module - admin login and sessions."""
