import dataclasses

import pytest

from tonvanity.core import ContractVersion, TonCandidateGenerator
from tonvanity.search import SearchOutcome
from tonvanity.verify import verify_outcome


@pytest.fixture(scope="module")
def outcome():
    candidate = TonCandidateGenerator(ContractVersion.V3R2)()
    return SearchOutcome.from_candidate(candidate, contract_version=ContractVersion.V3R2)


def test_genuine_outcome_verifies(outcome):
    result = verify_outcome(outcome)
    assert result == {
        "public_key_match": True,
        "mnemonic_match": True,
        "address_match": True,
        "error": None,
    }


def test_wrong_contract_version_fails_address(outcome):
    tampered = dataclasses.replace(outcome, contract_version=ContractVersion.V4R2)
    result = verify_outcome(tampered)
    assert result["public_key_match"] is True
    assert result["address_match"] is False


def test_foreign_mnemonic_fails(outcome):
    other = TonCandidateGenerator(ContractVersion.V3R2)()
    tampered = dataclasses.replace(outcome, mnemonic=other.mnemonic)
    assert verify_outcome(tampered)["mnemonic_match"] is False


def test_garbage_reports_error(outcome):
    tampered = dataclasses.replace(outcome, private_key="zz")
    result = verify_outcome(tampered)
    assert result["error"]


def test_v5r1_outcome_verifies():
    candidate = TonCandidateGenerator(ContractVersion.V5R1)()
    outcome = SearchOutcome.from_candidate(candidate, contract_version=ContractVersion.V5R1)
    result = verify_outcome(outcome)
    assert result["error"] is None
    assert result["address_match"] is True
