"""Service layer: local mock API server and the ``gemini-chat`` console shell."""
