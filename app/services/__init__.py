"""
Services.

Chain access, replica convergence and account ranking. Import from the
subpackages: ``app.services.chain_client``, ``app.services.chain_walker``
and ``app.services.account_ranking``.
"""
