"""
Pytest configuration and fixtures for Pantry Manager deployment tests
Sets dummy AWS credentials and shared catalog fixtures
"""
import os
import sys
import pytest
from pathlib import Path

# Dummy credentials BEFORE any boto3 client is created
os.environ.setdefault('AWS_ACCESS_KEY_ID', 'testing')
os.environ.setdefault('AWS_SECRET_ACCESS_KEY', 'testing')
os.environ.setdefault('AWS_SECURITY_TOKEN', 'testing')
os.environ.setdefault('AWS_SESSION_TOKEN', 'testing')
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')

# Add src and infrastructure directories to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))
sys.path.insert(0, str(project_root / "infrastructure"))

from pantry_deploy.secret_catalog import SecretDescriptor


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: marks fast tests with no AWS access"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that exercise a mocked AWS account end to end"
    )


@pytest.fixture
def small_catalog():
    """Two required secrets and one optional"""
    return (
        SecretDescriptor(name='alpha', description='First secret', reference_key='ALPHA', example='a-123'),
        SecretDescriptor(name='beta', description='Second secret', reference_key='BETA'),
        SecretDescriptor(name='gamma', description='Optional secret', reference_key='GAMMA', required=False),
    )


@pytest.fixture
def complete_secret_arns():
    """ARNs for every reference key of the shipped catalog"""
    from pantry_deploy.secret_catalog import SECRET_CATALOG

    return {
        descriptor.reference_key: (
            f"arn:aws:secretsmanager:us-east-2:123456789012:secret:{descriptor.name}-AbCdEf"
        )
        for descriptor in SECRET_CATALOG
    }
