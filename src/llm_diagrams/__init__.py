"""Natural-language to PlantUML diagram service."""

__version__ = "0.1.0"
