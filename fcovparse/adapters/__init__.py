"""Report format adapters."""
