"""Domain layer: wire payloads, image codec, log interpretation, registry fold.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
