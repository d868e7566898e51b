#!/usr/bin/env python3
"""
Create the AWS Secrets Manager secrets for Pantry Manager

⚠️  IMPORTANT: Run this script BEFORE deploying the CDK stack!

Usage:
    python scripts/create_secrets.py [--region REGION]

After running this script:
    1. Update src/pantry_deploy/config.py with the generated ARNs
    2. Run `cdk deploy` to deploy your stack
"""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from pantry_deploy.cli import main


if __name__ == "__main__":
    sys.exit(main())
