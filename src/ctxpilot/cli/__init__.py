"""ctxpilot command-line interface."""
