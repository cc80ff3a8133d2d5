"""
Services Layer

Pure business logic services that:
- Accept domain inputs (match collections, standings, sessions)
- Return domain outputs (models, dataclasses, dicts)
- Do NOT depend on HTTP request/response objects
- Do NOT mutate data unless explicitly designed to (propagation, tournament_service)
"""
