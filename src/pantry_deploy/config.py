"""
Deployment configuration for Pantry Manager
Static settings consumed by the Amplify hosting stack

IMPORTANT: Fill SECRET_ARNS with the ARNs printed by the create-secrets script
before running `cdk deploy`. ARN format:
arn:aws:secretsmanager:us-east-2:123456789012:secret:secret-name-AbCdEf
"""
import os
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, List

from .secret_catalog import reference_keys

logger = logging.getLogger(__name__)

DEFAULT_REGION = 'us-east-2'  # Ohio

GITHUB = {
    'REPOSITORY': 'https://github.com/PantryManager/PantryManagerApp',
    'OWNER': 'PantryManager',
    'REPO_NAME': 'PantryManagerApp',
    'BRANCH': 'main',
}

BUILD = {
    'NODE_VERSION': '20',
    'INSTALL_COMMAND': 'npm ci',
    'BUILD_COMMAND': 'npm run build',
}

# Keyed by reference key; paste the create-secrets output here
SECRET_ARNS: Dict[str, str] = {
    'GITHUB_TOKEN': '',
    'GITHUB_ID': '',
    'GITHUB_SECRET': '',
    'NEXTAUTH_SECRET': '',
    'DATABASE_URL': '',
    'DIRECT_URL': '',
    'FDC_API_KEY': '',
    'GEMINI_API_KEY': '',
}

NEXTAUTH_URL = ''


@dataclass(frozen=True)
class GitHubConfig:
    repository: str
    owner: str
    repo_name: str
    branch: str


@dataclass(frozen=True)
class BuildConfig:
    node_version: str
    install_command: str
    build_command: str


@dataclass(frozen=True)
class DeploymentConfig:
    """Everything the hosting stack needs to know at synth time"""
    region: str
    github: GitHubConfig
    build: BuildConfig
    secret_arns: Dict[str, str] = field(default_factory=dict)
    nextauth_url: str = ''

    def missing_secret_arns(self) -> List[str]:
        """Reference keys of the catalog that still have no ARN, in catalog order"""
        return [key for key in reference_keys() if not self.secret_arns.get(key)]

    def secret_arn(self, reference_key: str) -> str:
        """
        Get the ARN recorded for a reference key

        Raises:
            KeyError: If no ARN is configured for the key
        """
        arn = self.secret_arns.get(reference_key)
        if not arn:
            raise KeyError(f"No secret ARN configured for {reference_key}")
        return arn


def load_config() -> DeploymentConfig:
    """Build the deployment config from module settings and environment overrides"""
    region = os.environ.get('PANTRY_DEPLOY_REGION', DEFAULT_REGION)
    branch = os.environ.get('PANTRY_GITHUB_BRANCH', GITHUB['BRANCH'])
    nextauth_url = os.environ.get('PANTRY_NEXTAUTH_URL', NEXTAUTH_URL)

    config = DeploymentConfig(
        region=region,
        github=GitHubConfig(
            repository=GITHUB['REPOSITORY'],
            owner=GITHUB['OWNER'],
            repo_name=GITHUB['REPO_NAME'],
            branch=branch,
        ),
        build=BuildConfig(
            node_version=BUILD['NODE_VERSION'],
            install_command=BUILD['INSTALL_COMMAND'],
            build_command=BUILD['BUILD_COMMAND'],
        ),
        secret_arns=dict(SECRET_ARNS),
        nextauth_url=nextauth_url,
    )

    missing = config.missing_secret_arns()
    if missing:
        logger.debug(f"Secret ARNs not yet configured: {', '.join(missing)}")
    return config


@lru_cache(maxsize=1)
def get_config() -> DeploymentConfig:
    """Cached deployment config"""
    return load_config()
