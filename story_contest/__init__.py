"""Story Contest Platform: competition lifecycle manager and assessment engine."""

__version__ = "1.0.0"
