"""Builders for Kubernetes objects and status records."""
