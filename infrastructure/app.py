#!/usr/bin/env python3
"""
AWS CDK App for Pantry Manager
"""
import os
import aws_cdk as cdk
from stacks.amplify_stack import AmplifyStack

from pantry_deploy.config import get_config


app = cdk.App()
config = get_config()

# Get environment configuration
environment = app.node.try_get_context("environment") or "prod"
account = app.node.try_get_context("account") or os.environ.get("CDK_DEFAULT_ACCOUNT")
region = app.node.try_get_context("region") or config.region

env_config = cdk.Environment(account=account, region=region)

# Deploy Amplify stack for the Pantry Manager Next.js application
AmplifyStack(
    app,
    "PantryManagerAmplifyStack",
    config=config,
    environment_name=environment,
    env=env_config,
    description="Amplify hosting stack for Pantry Manager Next.js application with CI/CD pipeline"
)

app.synth()
