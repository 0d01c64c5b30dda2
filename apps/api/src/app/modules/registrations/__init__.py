"""Registrations module - intake, status workflow and audit trail."""
