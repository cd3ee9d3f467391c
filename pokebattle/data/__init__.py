"""Persistence for creatures and battles."""
