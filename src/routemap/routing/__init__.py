"""Routing — route table, rule pipeline, matching and generation.

Routes are registered during setup and can be frozen into a read-only
table before being shared between threads.
"""
