"""
Easy Note Backend: Application Package
======================================

What: AI gateway for the Easy Note mobile and web clients.
Why:  Clients never talk to the model provider directly. Every AI feature goes
      through this service so API keys stay server-side and the client only
      ever sees a fixed JSON contract.
Who:  Imported by uvicorn (`easynote.main:app`), pytest, and every submodule.

Architecture Note:

    ┌─────────────────────────────────────┐
    │         Routes (API Layer)          │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Orchestration Layer)    │  ← validate → prompt → call → coerce
    ├─────────────────────────────────────┤
    │   Adapters (Provider Boundary)      │  ← Gemini, Firebase
    └─────────────────────────────────────┘

    Nothing is persisted. Each request is handled start to finish in memory,
    apart from the temporary audio file staged for transcription.
"""

__version__ = "1.0.0"
