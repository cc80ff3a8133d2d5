"""World Cup 2026 bracket tracker: standings, qualification and knockout propagation."""

__version__ = "0.1.0"
