"""Phoenix: CDC-driven AI enrichment of legacy insurance claims."""

__version__ = "0.1.0"
