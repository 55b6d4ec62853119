"""formflow_server — FastAPI REST API for the formflow SDK.

Exposes the FormEngine as an HTTP API with form listing, session
management, step-by-step form filling, and response submission.
"""
