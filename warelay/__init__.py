"""warelay - relay WhatsApp messages to a reply-generating command."""

__version__ = "0.1.0"
