"""Analyzers for the Wi-Fi threat analysis engine."""
