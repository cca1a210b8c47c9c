"""Typings package registry, source scanning and dependency extraction."""
