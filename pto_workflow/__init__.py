"""PTO request intake, deadline checks, approval routing and balance bookkeeping."""

__version__ = "0.1.0"
