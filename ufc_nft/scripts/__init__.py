"""
Pipeline scripts for the ``ufc_nft`` module.

Each script is its own process entry point and exits non-zero on failure.

    **Deployment**:
    - deploy.py: publish the compiled ``ufc_nft`` package

    **Series/set pipeline** (run in order; ids are handed over through files):
    - create_series.py: create a series, write ``series_id.txt``
    - create_set.py: create a set in that series, write ``set_id.txt``
    - mint_nft.py: mint an edition of the set and attach its metadata

    **Collections**:
    - create_collections.py: create many collections with rate-limit pacing
    - batch_mint.py: mint a batch described by a JSON data file
    - update_token_uri.py: point an existing token at a new URI

Run any of them with ``python -m ufc_nft.scripts.<name> --help``.
"""
