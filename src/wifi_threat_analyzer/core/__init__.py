"""Core models, configuration, history and orchestration."""
