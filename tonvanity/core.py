"""
Candidate generation for TON wallet vanity search.

Mnemonic generation, key derivation and the v3/v4 wallet contracts come from
tonsdk; the v5r1 (W5) contract comes from tonutils, which tonsdk predates.
This module only glues them into the single hot-path call each worker makes
per attempt.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from tonsdk.contract.wallet import Wallets, WalletVersionEnum
from tonsdk.crypto import mnemonic_new, mnemonic_to_wallet_key
from tonutils.client import ToncenterV3Client
from tonutils.wallet import WalletV5R1

from tonvanity.errors import GenerationError, ValidationError

MNEMONIC_WORDS = 24
PUBLIC_KEY_HEX_LENGTH = 64      # 32-byte Ed25519 public key
PRIVATE_KEY_HEX_LENGTH = 128    # 64-byte secret (seed + public key)
DEFAULT_WORKCHAIN = 0


class ContractVersion(Enum):
    V3R1 = "v3r1"
    V3R2 = "v3r2"
    V4R2 = "v4r2"
    V5R1 = "v5r1"

    @classmethod
    def parse(cls, value) -> "ContractVersion":
        """Accept an enum member or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            supported = ", ".join(f'"{v.value}"' for v in cls)
            raise ValidationError(
                f"Invalid contract version {value!r}. Supported values: {supported}."
            ) from None


DEFAULT_CONTRACT_VERSION = ContractVersion.V4R2


@lru_cache(maxsize=None)
def _mainnet_client() -> ToncenterV3Client:
    # Never queried. WalletV5R1 reads the network id for its wallet_id from it.
    return ToncenterV3Client(is_testnet=False)


@dataclass(frozen=True)
class Candidate:
    """One generated wallet: key material, seed phrase and encoded address."""
    public_key: bytes
    private_key: bytes
    mnemonic: tuple[str, ...]
    address: str


def wallet_address(
    public_key: bytes,
    private_key: bytes,
    contract_version: ContractVersion = DEFAULT_CONTRACT_VERSION,
    workchain: int = DEFAULT_WORKCHAIN,
) -> str:
    """Render the user-friendly, url-safe, bounceable wallet address.

    Only the public key affects the address; the wallet classes of both
    libraries still require the private key on construction.
    """
    if contract_version is ContractVersion.V5R1:
        if workchain != DEFAULT_WORKCHAIN:
            raise ValidationError("v5r1 wallets are only supported on the basechain.")
        wallet = WalletV5R1(_mainnet_client(), public_key, private_key)
        return wallet.address.to_str(True, True, True)

    contract_cls = Wallets.ALL[WalletVersionEnum(contract_version.value)]
    wallet = contract_cls(public_key=public_key, private_key=private_key, wc=workchain)
    return wallet.address.to_string(True, True, True)


class TonCandidateGenerator:
    """Zero-argument callable producing a fresh random Candidate per call.

    Instances hold no entropy state of their own; every call draws a new
    mnemonic from the OS random source, so one instance per worker is enough.
    """

    def __init__(
        self,
        contract_version: ContractVersion = DEFAULT_CONTRACT_VERSION,
        workchain: int = DEFAULT_WORKCHAIN,
    ):
        self.contract_version = ContractVersion.parse(contract_version)
        if self.contract_version is ContractVersion.V5R1 and workchain != DEFAULT_WORKCHAIN:
            raise ValidationError("v5r1 wallets are only supported on the basechain.")
        self.workchain = workchain

    def __call__(self) -> Candidate:
        try:
            words = mnemonic_new(MNEMONIC_WORDS)
            public_key, private_key = mnemonic_to_wallet_key(words)
            address = wallet_address(
                public_key, private_key, self.contract_version, self.workchain
            )
        except Exception as e:
            raise GenerationError(f"Error generating wallet: {e}") from e

        return Candidate(
            public_key=bytes(public_key),
            private_key=bytes(private_key),
            mnemonic=tuple(words),
            address=address,
        )

    def __repr__(self) -> str:
        return f"TonCandidateGenerator({self.contract_version.value!r}, workchain={self.workchain})"
