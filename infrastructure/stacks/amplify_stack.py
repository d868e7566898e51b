"""
Amplify Hosting Stack for Pantry Manager
Hosts the Next.js application on Amplify, wired to secrets that already exist
in AWS Secrets Manager (created by scripts/create_secrets.py)

Secret values never enter the template: the app receives secret ARNs and its
compute role resolves them at runtime. The repository access token is passed
as a CloudFormation dynamic reference.
"""
import json
import aws_cdk as cdk
from aws_cdk import (
    Stack,
    aws_amplify as amplify,
    aws_iam as iam,
    aws_secretsmanager as secretsmanager,
)
from constructs import Construct
from typing import Dict, List

from pantry_deploy.config import DeploymentConfig
from pantry_deploy.secret_catalog import SECRET_CATALOG, SOURCE_ACCESS_TOKEN_KEY

SECRET_ARN_ENV_SUFFIX = "_SECRET_ARN"


class AmplifyStack(Stack):
    """Amplify hosting infrastructure stack"""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: DeploymentConfig,
        environment_name: str = "prod",
        **kwargs
    ) -> None:
        missing = config.missing_secret_arns()
        if missing:
            raise ValueError(
                "Secret ARNs missing from deployment config: "
                f"{', '.join(missing)}. Run scripts/create_secrets.py and update "
                "src/pantry_deploy/config.py first."
            )

        super().__init__(scope, construct_id, **kwargs)

        self.config = config
        self.environment_name = environment_name

        # Import existing secrets from Secrets Manager
        self.secrets = self._import_secrets()
        self.secrets_region = self._secrets_region()

        self.service_role = self._create_service_role()
        self.compute_role = self._create_compute_role()

        self.amplify_app = self._create_app()
        self.main_branch = self._create_branch()

        self._create_outputs()

    def _import_secrets(self) -> Dict[str, secretsmanager.ISecret]:
        secrets = {}
        for descriptor in SECRET_CATALOG:
            construct_id = "".join(part.capitalize() for part in descriptor.reference_key.split("_"))
            secrets[descriptor.reference_key] = secretsmanager.Secret.from_secret_complete_arn(
                self,
                construct_id,
                self.config.secret_arn(descriptor.reference_key)
            )
        return secrets

    def _runtime_secret_keys(self) -> List[str]:
        return [key for key in self.secrets if key != SOURCE_ACCESS_TOKEN_KEY]

    def _secrets_region(self) -> str:
        """Region the runtime secrets were created in, read from their ARNs"""
        regions = {
            cdk.Arn.split(self.config.secret_arn(key), cdk.ArnFormat.COLON_RESOURCE_NAME).region
            for key in self._runtime_secret_keys()
        }
        if len(regions) != 1:
            raise ValueError(
                "Runtime secrets must live in a single region, found: "
                f"{', '.join(sorted(regions))}"
            )
        return regions.pop()

    def _create_service_role(self) -> iam.Role:
        """Create IAM role Amplify uses to run builds and deployments"""
        role = iam.Role(
            self,
            "AmplifyServiceRole",
            assumed_by=iam.ServicePrincipal("amplify.amazonaws.com"),
            description="Service role for Amplify to access AWS resources"
        )

        role.add_managed_policy(
            iam.ManagedPolicy.from_aws_managed_policy_name("AdministratorAccess-Amplify")
        )

        return role

    def _create_compute_role(self) -> iam.Role:
        """Create IAM role the SSR runtime assumes to read application secrets"""
        role = iam.Role(
            self,
            "AmplifyComputeRole",
            assumed_by=iam.ServicePrincipal("amplify.amazonaws.com"),
            description="Runtime role for the Next.js server to read application secrets"
        )

        for key in self._runtime_secret_keys():
            self.secrets[key].grant_read(role)

        return role

    def _environment_variables(self) -> List[amplify.CfnApp.EnvironmentVariableProperty]:
        variables = [
            amplify.CfnApp.EnvironmentVariableProperty(
                name=f"{key}{SECRET_ARN_ENV_SUFFIX}",
                value=self.secrets[key].secret_arn
            )
            for key in self._runtime_secret_keys()
        ]

        variables.append(amplify.CfnApp.EnvironmentVariableProperty(
            name="SECRETS_REGION",
            value=self.secrets_region
        ))

        if self.config.nextauth_url:
            variables.append(amplify.CfnApp.EnvironmentVariableProperty(
                name="NEXTAUTH_URL",
                value=self.config.nextauth_url
            ))

        # Next.js specific environment variables
        variables.append(amplify.CfnApp.EnvironmentVariableProperty(
            name="_LIVE_UPDATES",
            value=json.dumps([
                {
                    "pkg": "next-version",
                    "type": "internal",
                    "version": "latest",
                }
            ])
        ))

        return variables

    def _create_app(self) -> amplify.CfnApp:
        access_token = cdk.SecretValue.secrets_manager(
            self.secrets[SOURCE_ACCESS_TOKEN_KEY].secret_arn
        )

        return amplify.CfnApp(
            self,
            "PantryManagerApp",
            name=f"pantry-manager-{self.environment_name}",
            repository=self.config.github.repository,
            # Dynamic reference, resolved by CloudFormation at deploy time
            access_token=access_token.unsafe_unwrap(),
            platform="WEB_COMPUTE",  # Required for Next.js SSR
            environment_variables=self._environment_variables(),
            enable_branch_auto_deletion=True,
            iam_service_role=self.service_role.role_arn,
            compute_role_arn=self.compute_role.role_arn
        )

    def _build_spec(self) -> str:
        build = self.config.build
        return f"""version: 1
frontend:
  phases:
    preBuild:
      commands:
        - nvm use {build.node_version}
        - {build.install_command}
        - npx prisma generate
    build:
      commands:
        - {build.build_command}
  artifacts:
    baseDirectory: .next
    files:
      - '**/*'
  cache:
    paths:
      - .next/cache/**/*
      - node_modules/**/*
"""

    def _create_branch(self) -> amplify.CfnBranch:
        stage = "PRODUCTION" if self.environment_name.upper() == "PROD" else "DEVELOPMENT"

        return amplify.CfnBranch(
            self,
            "MainBranch",
            app_id=self.amplify_app.attr_app_id,
            branch_name=self.config.github.branch,
            enable_auto_build=True,
            enable_pull_request_preview=False,
            framework="Next.js - SSR",
            stage=stage,
            build_spec=self._build_spec()
        )

    def _create_outputs(self):
        """Create CloudFormation outputs"""
        cdk.CfnOutput(
            self,
            "AmplifyAppId",
            value=self.amplify_app.attr_app_id,
            description="Amplify App ID",
            export_name=f"{self.environment_name}-amplify-app-id"
        )

        cdk.CfnOutput(
            self,
            "AmplifyAppUrl",
            value=f"https://{self.config.github.branch}.{self.amplify_app.attr_default_domain}",
            description="Amplify App URL",
            export_name=f"{self.environment_name}-amplify-app-url"
        )

        cdk.CfnOutput(
            self,
            "AmplifyConsoleUrl",
            value=f"https://console.aws.amazon.com/amplify/home?region={self.region}#/{self.amplify_app.attr_app_id}",
            description="Amplify Console URL"
        )
