"""followup_server — FastAPI REST API for the follow-up SDK.

Publishes the question catalogs (so remote clients can fetch them with
``RemoteCatalogSource``) and exposes the resolver and summary builder as
stateless endpoints.  No response map is ever stored server-side.
"""
