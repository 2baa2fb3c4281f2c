"""Vigil: keep one process alive and keep deployments current."""
