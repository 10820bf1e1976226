"""Consent-aware Open Banking request proxy."""
