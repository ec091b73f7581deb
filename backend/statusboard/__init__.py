"""statusboard - multi-protocol monitor execution engine."""
