"""Domain layer — declarations, rules, payload assembly, DTO projection.

This layer depends only on stdlib and pydantic.
It must never import from pipeline, infrastructure, services, or commands.
"""
