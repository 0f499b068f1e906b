"""Driver deployment and removal on the host."""
