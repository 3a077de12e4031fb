"""Bridge layer between dpplink and its external collaborators.

Modules
-------
signer
    ``Signer`` capability protocol and the Ed25519 implementation derived
    from a BIP-39 mnemonic. Used by ledger writes only.
gateway
    ``ManifestFetcher`` over an IPFS HTTP gateway (httpx). Used by the
    resolver after verification succeeds.
"""
