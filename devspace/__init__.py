"""Cosmic DevSpace portfolio comments."""
