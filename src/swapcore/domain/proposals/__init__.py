"""Proposal lifecycle: validation, ranking and resolution."""
