"""Infrastructure layer: external API clients and persistence"""
