"""Application wiring: configuration, database, cache and FastAPI app"""
