"""Shared infrastructure: errors, logging, audit and redaction."""
