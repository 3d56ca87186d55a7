"""Proposal tally service packages."""
