"""
Independent verification of a found wallet.

The Ed25519 key pair is re-derived with the cryptography library, and the
mnemonic and address are re-derived through tonsdk.
"""

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from tonsdk.crypto import mnemonic_to_wallet_key

from tonvanity.core import ContractVersion, wallet_address


def verify_outcome(outcome) -> dict:
    """Check that a SearchOutcome's fields are consistent with each other.

    Returns dict with:
        public_key_match, mnemonic_match, address_match, error
    """
    result = {
        "public_key_match": None,
        "mnemonic_match": None,
        "address_match": None,
        "error": None,
    }

    try:
        public_key = bytes.fromhex(outcome.public_key)
        secret = bytes.fromhex(outcome.private_key)

        derived_pub = Ed25519PrivateKey.from_private_bytes(secret[:32]).public_key().public_bytes(
            serialization.Encoding.Raw, serialization.PublicFormat.Raw
        )
        result["public_key_match"] = derived_pub == public_key and secret[32:] == public_key

        mnemonic_pub, mnemonic_secret = mnemonic_to_wallet_key(list(outcome.mnemonic))
        result["mnemonic_match"] = (
            bytes(mnemonic_pub) == public_key and bytes(mnemonic_secret) == secret
        )

        version = ContractVersion.parse(outcome.contract_version)
        result["address_match"] = wallet_address(public_key, secret, version) == outcome.address
    except Exception as e:
        result["error"] = str(e)

    return result
