"""priorauth_server — FastAPI REST API for the prior-authorization SDK.

Exposes the IntakeEngine as an HTTP API with session management, intake
and answer submission, reference data, and an admin sweep endpoint.  A
background reaper drops idle sessions.
"""
