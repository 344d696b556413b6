from .scorer import ContentScorer, signal_weight

__all__ = ["ContentScorer", "signal_weight"]
