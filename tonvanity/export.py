"""
Reporting and persistence of a found wallet.

Saving is best effort: a failed write is logged and never fails the search,
since the caller already holds the outcome in memory.
"""

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_RESULT_FILE = "ton_wallet_results.txt"


def format_result_text(outcome) -> str:
    return (
        f"Public Key: {outcome.public_key}\n"
        f"Private Key: {outcome.private_key}\n"
        f"Words: {outcome.phrase}\n"
        f"Wallet: {outcome.address}\n"
    )


def save_result_text(outcome, path: str) -> str:
    """Write the wallet credentials to ``path`` as plain text.

    Returns the absolute path of the saved file. Raises OSError on failure.
    """
    abs_path = os.path.abspath(path)
    os.makedirs(os.path.dirname(abs_path) or ".", exist_ok=True)
    with open(abs_path, "w") as f:
        f.write(format_result_text(outcome))
    try:
        os.chmod(abs_path, 0o600)
    except OSError:
        pass  # Windows: chmod not fully supported
    return abs_path


class ResultSink:
    """Logs and optionally saves a SearchOutcome.

    Args:
        show_result: Log the credentials; otherwise log only that the search ended.
        save_path: Destination file, or None to skip saving.
    """

    def __init__(self, show_result: bool = True, save_path: Optional[str] = None):
        self.show_result = show_result
        self.save_path = save_path

    def consume(self, outcome) -> Optional[str]:
        """Report ``outcome``. Returns the saved file path, or None."""
        if self.show_result:
            logger.info("Public Key: %s", outcome.public_key)
            logger.info("Private Key: %s", outcome.private_key)
            logger.info("Words: %s", outcome.phrase)
            logger.info("Wallet: %s", outcome.address)
        else:
            logger.info("The search is over.")

        if self.save_path is None:
            return None

        logger.warning(
            "Private key and seed phrase are being saved to disk in plain text. "
            "Keep the file secure and never share it."
        )
        try:
            path = save_result_text(outcome, self.save_path)
        except OSError as e:
            logger.error("Error while writing results to file: %s", e)
            return None
        logger.info("Results saved to %s", path)
        return path
