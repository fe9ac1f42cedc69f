"""Utility functions for the CockroachDB Cloud Operator."""
