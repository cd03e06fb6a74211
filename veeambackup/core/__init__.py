"""Core session layer of the Veeam backup provider.

Module Structure:
    - auth/       : Token state, per-service sessions and authenticated requests
    - router.py   : Resource type → service resolution, service detection
    - client.py   : VeeamClient façade handed to the resource/data-source layer

Usage Pattern:
    Modules are NOT auto-imported; import them explicitly:
        from veeambackup.core.client import VeeamClient
        from veeambackup.core.router import ServiceRouter, detect_service_type
        from veeambackup.core.auth import SessionManager, RequestExecutor

Public APIs:
    Façade (veeambackup.core.client):
        - VeeamClient.from_config()
        - VeeamClient.client_for()
        - VeeamClient.request()
        - VeeamClient.close()

    Routing (veeambackup.core.router):
        - ServiceRouter.resolve()
        - service_for()
        - detect_service_type()

    Sessions (veeambackup.core.auth):
        - SessionManager (Password/Refresh_token grants, token caching)
        - RequestExecutor (bearer + version headers, typed errors)
"""
