"""courseplan: question bundle assignment and personalized timelines."""

__version__ = "1.0.0"
