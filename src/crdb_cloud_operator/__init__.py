"""CockroachDB Cloud DBaaS Operator."""

__version__ = "0.1.0"
