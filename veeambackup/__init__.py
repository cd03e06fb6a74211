"""Veeam backup provider session layer.

To use the provider façade:
    from veeambackup.core.client import VeeamClient
    from veeambackup.config import load_settings

    with VeeamClient.from_config(load_settings()) as client:
        repositories = client.request("veeambackup_vbr_repositories", "GET", url)

To use a single service session:
    from veeambackup.core.auth import SessionManager, RequestExecutor
"""
