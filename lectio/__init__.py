"""lectio-diei: daily Catholic readings from the USCCB site, cached locally."""

__version__ = "0.3.1"
