"""Targeting graph, its validation rules and the public coordinator."""
