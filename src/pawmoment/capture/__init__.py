from pawmoment.capture.orchestrator import CaptureOrchestrator

__all__ = ["CaptureOrchestrator"]
