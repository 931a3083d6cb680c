"""Service layer — operations returning ServiceResult.

Services may import from domain, pipeline, and infrastructure.
They must never import from commands or output.
"""
