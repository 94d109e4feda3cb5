"""
Services Layer

Ladder rules engine and its persistence helpers:
- Pure rule modules (registry, set outcome, aggregation, ranking, points, movement)
  take plain values and return dataclasses
- Session-bound services (placement, standings, weekly ranks, submission)
  read and write through a SQLModel Session
- Nothing here depends on HTTP request/response objects
"""
