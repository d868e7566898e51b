"""
Error taxonomy for Pantry Manager secrets provisioning
"""
from typing import Optional


class SecretStoreError(Exception):
    """Base class for failures reported by the secret store"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class StoreUnavailable(SecretStoreError):
    """The store could not be reached or failed internally"""


class PermissionDenied(SecretStoreError):
    """The caller is not allowed to perform the operation"""


class CredentialsMissing(PermissionDenied):
    """No usable AWS credentials were found"""


class InvalidValue(SecretStoreError):
    """The store rejected the secret name, value or description"""


class AbortedByOperator(Exception):
    """Operator declined the confirmation gate"""


class FatalStoreError(Exception):
    """Store failure that ends the provisioning run"""

    def __init__(self, secret_name: str, cause: SecretStoreError):
        super().__init__(f"Could not check secret '{secret_name}': {cause}")
        self.secret_name = secret_name
        self.cause = cause
