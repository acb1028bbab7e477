"""
Error types shared by the rendering core.
"""

import logging


logger = logging.getLogger(__name__)


class ContractError(RuntimeError):
    """Raised when a caller breaks a usage contract of the core (debug runs only)."""


def require(condition: bool, message: str) -> bool:
    """
    Check a usage contract.

    With assertions enabled (the default interpreter mode) a broken contract
    raises ContractError. Under ``python -O`` the violation is logged and the
    caller is expected to turn the operation into a no-op.

    Args:
        condition: Contract that must hold
        message: Description of the violation

    Returns:
        True if the contract holds, False otherwise
    """
    if condition:
        return True
    if __debug__:
        raise ContractError(message)
    logger.error("Contract violation: %s", message)
    return False
