"""flowrun - Workflow execution service: settings, logging, storage, job transport and CLI."""

__version__ = "0.1.0"
