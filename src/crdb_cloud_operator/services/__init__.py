"""CockroachDB Cloud service clients."""
