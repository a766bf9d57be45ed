"""
Pure pipeline stages: parse -> resolve/validate -> execute -> report.

Nothing here talks to Slack directly; collaborators are passed in.
"""

__all__ = ["executor", "parser", "report", "resolver", "validator"]
