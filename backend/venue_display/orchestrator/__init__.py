from venue_display.orchestrator.orchestrator import Celebration, DisplayOrchestrator, OrchestratorOptions

__all__ = ["Celebration", "DisplayOrchestrator", "OrchestratorOptions"]
