"""Unit tests for the ledger and shared models."""
