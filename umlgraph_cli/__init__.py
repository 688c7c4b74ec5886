"""umlgraph: UML class diagrams from Java sources."""

__version__ = "0.3.0"
