"""CabinetWatch - severity engine for liquid-cooled server cabinets."""

__version__ = "0.1.0"
