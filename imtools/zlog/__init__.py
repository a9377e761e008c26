"""Structured, context-aware logging to the console, streams and rotating files."""