"""Dual-provider data analysis and chat with response reconciliation."""
