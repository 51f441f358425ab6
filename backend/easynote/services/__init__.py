# Services package init
"""
Easy Note Backend: Services Layer
=================================

Service Inventory:
    - llm_base:        CompletionAdapter / TranscriptionAdapter interfaces
    - gemini_service:  Google Gemini implementation of both adapters
    - coercion:        untrusted model output → strict task results
    - upload_service:  audio filter + scoped temp-file staging
    - auth_service:    AuthVerifier interface + Firebase implementation
    - ai_service:      the five task pipelines (validate → prompt → call → coerce)

Routes call AIService; AIService calls adapters through the interfaces only,
so tests can swap in fakes without touching task code.
"""
