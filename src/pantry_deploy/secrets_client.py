"""
Secrets Manager store for Pantry Manager secrets provisioning
Wraps AWS Secrets Manager behind the exists/create interface the provisioner uses
"""
import os
import logging
from typing import Any, Optional, Protocol

import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
    ProfileNotFound,
)

from .exceptions import (
    CredentialsMissing,
    InvalidValue,
    PermissionDenied,
    SecretStoreError,
    StoreUnavailable,
)

logger = logging.getLogger(__name__)

DEFAULT_REGION = 'us-east-1'

PERMISSION_ERROR_CODES = {
    'AccessDenied',
    'AccessDeniedException',
    'UnrecognizedClientException',
    'InvalidClientTokenId',
    'ExpiredToken',
    'ExpiredTokenException',
    'InvalidSignatureException',
    'SignatureDoesNotMatch',
}

INVALID_VALUE_ERROR_CODES = {
    'InvalidParameterException',
    'InvalidRequestException',
    'ResourceExistsException',
    'LimitExceededException',
    'MalformedPolicyDocumentException',
    'EncryptionFailure',
    'ValidationException',
}


class SecretStore(Protocol):
    """Minimal store interface consumed by the provisioner"""

    def exists(self, name: str) -> bool:
        ...

    def create(self, name: str, value: str, description: str) -> str:
        ...


def translate_error(error: Exception, secret_name: str) -> SecretStoreError:
    """
    Map a botocore failure onto the store error taxonomy

    Args:
        error: Exception raised by boto3
        secret_name: Secret the call was made for (used in the message)

    Returns:
        The matching SecretStoreError subclass instance
    """
    if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
        return CredentialsMissing(f"AWS credentials not found: {error}", code='NoCredentials')
    if isinstance(error, ProfileNotFound):
        return CredentialsMissing(f"AWS profile not found: {error}", code='ProfileNotFound')

    if isinstance(error, ClientError):
        error_code = error.response.get('Error', {}).get('Code', 'Unknown')
        message = error.response.get('Error', {}).get('Message') or str(error)

        if error_code in PERMISSION_ERROR_CODES:
            return PermissionDenied(f"Access denied for secret {secret_name}: {message}", code=error_code)
        if error_code in INVALID_VALUE_ERROR_CODES:
            return InvalidValue(f"Secret {secret_name} rejected: {message}", code=error_code)
        return StoreUnavailable(f"Secrets Manager error for {secret_name}: {message}", code=error_code)

    return StoreUnavailable(f"Secrets Manager unreachable for {secret_name}: {error}", code=type(error).__name__)


class SecretsManagerStore:
    """Secret store backed by AWS Secrets Manager"""

    def __init__(
        self,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ):
        """
        Initialize the store

        Args:
            region: AWS region (defaults to AWS_DEFAULT_REGION, then us-east-1)
            endpoint_url: Custom endpoint for LocalStack (optional)
            client: Pre-built boto3 secretsmanager client (optional)

        Raises:
            SecretStoreError: If the client cannot be built, e.g. an unknown AWS_PROFILE
        """
        self.region = region or os.getenv('AWS_DEFAULT_REGION', DEFAULT_REGION)
        self.endpoint_url = endpoint_url or os.getenv('AWS_ENDPOINT_URL')

        if client is not None:
            self.client = client
            return

        client_config = {
            'region_name': self.region
        }

        if self.endpoint_url:
            client_config['endpoint_url'] = self.endpoint_url
            logger.info(f"Using custom Secrets Manager endpoint: {self.endpoint_url}")

        try:
            self.client = boto3.client('secretsmanager', **client_config)
        except BotoCoreError as e:
            raise translate_error(e, '<client>') from e

    def exists(self, name: str) -> bool:
        """
        Check whether a secret with this name is already in the store

        Args:
            name: Secret name

        Returns:
            True if the secret exists (including one scheduled for deletion)

        Raises:
            SecretStoreError: For any failure other than "not found"
        """
        try:
            logger.debug(f"Describing secret: {name}")
            response = self.client.describe_secret(SecretId=name)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ResourceNotFoundException':
                logger.debug(f"Secret not found: {name}")
                return False
            raise translate_error(e, name) from e
        except BotoCoreError as e:
            raise translate_error(e, name) from e

        if response.get('DeletedDate'):
            logger.warning(
                f"Secret {name} is scheduled for deletion; restore it before deploying"
            )
        return True

    def create(self, name: str, value: str, description: str) -> str:
        """
        Create a new secret

        Args:
            name: Secret name
            value: Plaintext secret string
            description: Purpose text stored with the secret

        Returns:
            ARN of the created secret

        Raises:
            SecretStoreError: If Secrets Manager rejects or fails the call
        """
        try:
            logger.info(f"Creating secret: {name}")
            response = self.client.create_secret(
                Name=name,
                Description=description,
                SecretString=value,
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, name) from e

        arn = response['ARN']
        logger.info(f"Successfully created secret: {name}")
        return arn

    def health_check(self) -> bool:
        """
        Verify the caller can reach Secrets Manager and list secrets

        Returns:
            True if Secrets Manager is accessible, False otherwise
        """
        try:
            self.client.list_secrets(MaxResults=1)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Secrets Manager health check failed in {self.region}: {translate_error(e, '<list>')}")
            return False
        logger.debug(f"Secrets Manager reachable in {self.region}")
        return True


def describe_store(store: SecretStore) -> str:
    """Human label for the store target, used in the confirmation plan"""
    region = getattr(store, 'region', None)
    endpoint_url = getattr(store, 'endpoint_url', None)
    if region and endpoint_url:
        return f"{region} ({endpoint_url})"
    return region or 'unknown region'
