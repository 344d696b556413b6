from .journeys import JourneyDefinition, load_journeys
from .quotes import Quote, QuoteCatalog

__all__ = ["Quote", "QuoteCatalog", "JourneyDefinition", "load_journeys"]
