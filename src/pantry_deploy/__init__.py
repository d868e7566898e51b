"""
Pantry Manager deployment tooling
Secrets provisioning for AWS Secrets Manager and the Amplify hosting config
"""

__version__ = "1.0.0"
