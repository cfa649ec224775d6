"""EdgeLab - trading journal and performance analytics for futures traders."""

__version__ = "0.1.0"
