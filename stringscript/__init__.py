"""Run request/response string scripts against a responder over a serial port."""

__version__ = "0.1.0"