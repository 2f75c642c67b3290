"""In-N-OutVoice — proposal pricing and PDF layout backend."""

__version__ = "1.0.0"
