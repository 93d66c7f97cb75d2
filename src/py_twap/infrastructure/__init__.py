"""Infrastructure adapters: settings, logging, persistence and migrations."""
