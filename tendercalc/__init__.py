"""TenderCalc - cross-contractor tender comparison engine."""

__version__ = "0.1.0"
