from pawmoment.trigger.debouncer import StabilityDebouncer

__all__ = ["StabilityDebouncer"]
