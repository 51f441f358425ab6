# Routes package init
"""
Easy Note Backend: API Routes Package
=====================================

Route Inventory:
    - ai.py:      POST /api/ai/transcribe   (multipart audio → transcript)
                  POST /api/ai/summarize    (note → 1-3 sentence summary)
                  POST /api/ai/tags         (note → up to 6 tags)
                  POST /api/ai/checklist    (note → actionable items)
                  POST /api/ai/detect-type  (note → category)
    - health.py:  GET  /api/health          (liveness probe, no auth)

Design Principle:
    Routes are THIN. They extract input from the request, call AIService,
    and wrap the result in a response model. Task logic lives in services.
"""
